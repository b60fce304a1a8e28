"""Bandwidth usage records and threshold classification."""

from .classifier import classify
from .models import (
    BYTES_PER_TB,
    ClassificationResult,
    ServerUsageRecord,
    ThresholdConfig,
    Tier,
    bytes_to_tb,
    format_percentage,
)
from .table import format_usage_table

__all__ = [
    # Classifier
    "classify",
    # Models
    "ClassificationResult",
    "ServerUsageRecord",
    "ThresholdConfig",
    "Tier",
    # Formatting
    "format_usage_table",
    "BYTES_PER_TB",
    "bytes_to_tb",
    "format_percentage",
]
