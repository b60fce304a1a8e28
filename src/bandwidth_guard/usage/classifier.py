"""Threshold classifier for server bandwidth usage."""

from collections.abc import Iterable

import structlog

from .models import ClassificationResult, ServerUsageRecord, ThresholdConfig, Tier

log = structlog.get_logger()


def classify(
    records: Iterable[ServerUsageRecord], thresholds: ThresholdConfig
) -> ClassificationResult:
    """Assign every record exactly one tier.

    Args:
        records: Server usage records, in fetch order
        thresholds: Notify and kill percentages

    Returns:
        ClassificationResult preserving input order within each bucket
    """
    result = ClassificationResult()
    for record in records:
        tier = thresholds.tier_for(record.ratio)
        result.entries.append((record, tier))
        if tier != Tier.NONE:
            log.debug(
                "Server over threshold",
                server_id=record.id,
                name=record.name,
                usage=record.usage_percentage,
                tier=tier.name,
            )

    return result
