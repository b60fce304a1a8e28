"""Shutdown executor for kill-tier servers."""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

import structlog

from bandwidth_guard.provider import ShutdownError
from bandwidth_guard.usage.models import ServerUsageRecord

log = structlog.get_logger()


class ShutdownProvider(Protocol):
    def shutdown_server(self, server_id: int) -> None: ...


@dataclass(frozen=True)
class ActionOutcome:
    """Result of one shutdown attempt."""

    record: ServerUsageRecord
    success: bool
    error: str | None = None


def shutdown(provider: ShutdownProvider, server_id: int) -> bool:
    """Shut down one server, returning False instead of raising on failure."""
    try:
        provider.shutdown_server(server_id)
    except ShutdownError as e:
        log.error("Failed to shut down server", server_id=server_id, error=str(e))
        return False

    log.warning("Server shut down for exceeding bandwidth threshold", server_id=server_id)
    return True


def execute_kills(
    provider: ShutdownProvider,
    records: Iterable[ServerUsageRecord],
    dry_run: bool = False,
) -> list[ActionOutcome]:
    """Shut down kill-tier servers one at a time, in order.

    Each call completes before the next starts; nothing is retried.

    Args:
        provider: Client exposing shutdown_server()
        records: Kill-tier records, in classification order
        dry_run: Log what would happen without calling the API

    Returns:
        One ActionOutcome per record
    """
    outcomes: list[ActionOutcome] = []
    for record in records:
        if dry_run:
            log.info(
                "Dry run: would shut down server",
                server_id=record.id,
                name=record.name,
                usage=record.usage_percentage,
            )
            outcomes.append(ActionOutcome(record=record, success=False, error="dry run"))
            continue

        log.info(
            "Server exceeds kill threshold, shutting down",
            server_id=record.id,
            name=record.name,
            usage=record.usage_percentage,
        )
        if shutdown(provider, record.id):
            outcomes.append(ActionOutcome(record=record, success=True))
        else:
            outcomes.append(ActionOutcome(record=record, success=False, error="shutdown failed"))

    return outcomes


def killed(outcomes: Iterable[ActionOutcome]) -> list[ServerUsageRecord]:
    """Records whose shutdown succeeded."""
    return [outcome.record for outcome in outcomes if outcome.success]
