"""Alert composition and Slack delivery for bandwidth breaches."""

from .composer import (
    MAX_BLOCKS,
    AlertReport,
    ReportKind,
    compose,
    format_killed_line,
    format_server_line,
)
from .slack import DeliveryError, SlackClient

__all__ = [
    # Composer
    "compose",
    "AlertReport",
    "ReportKind",
    "MAX_BLOCKS",
    "format_server_line",
    "format_killed_line",
    # Slack client
    "SlackClient",
    "DeliveryError",
]
