"""Data model for server bandwidth usage."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

BYTES_PER_TB = 1024**4


def bytes_to_tb(num_bytes: int, precision: int = 4) -> str:
    """Render a byte count in terabytes (1024^4) with fixed precision."""
    return f"{num_bytes / BYTES_PER_TB:.{precision}f}"


def format_percentage(ratio: float, precision: int = 4) -> str:
    """Render a usage ratio as a percentage string, e.g. 0.25 -> '25.0000%'."""
    return f"{ratio * 100:.{precision}f}%"


class Tier(Enum):
    """Classification outcome for a server's bandwidth usage.

    Values double as the action label in the console table.
    """

    NONE = "None"
    NOTIFY = "NOTIFY"
    KILL = "KILL"


@dataclass(frozen=True)
class ThresholdConfig:
    """Notify and kill thresholds, as percentages of included traffic."""

    notify_threshold: int = 50
    kill_threshold: int = 90

    def tier_for(self, ratio: float) -> Tier:
        """Return the tier for a usage ratio. Kill is checked first."""
        if ratio >= self.kill_threshold / 100:
            return Tier.KILL
        if ratio >= self.notify_threshold / 100:
            return Tier.NOTIFY
        return Tier.NONE


@dataclass(frozen=True)
class ServerUsageRecord:
    """Snapshot of one server's traffic at fetch time."""

    id: int
    name: str
    status: str
    outgoing_traffic: int = 0
    included_traffic: int = 0  # 0 means unlimited or unknown

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "ServerUsageRecord":
        """Build a record from a provider server object.

        Missing or null traffic counters are read as 0.
        """
        return cls(
            id=data["id"],
            name=data.get("name") or str(data["id"]),
            status=data.get("status") or "unknown",
            outgoing_traffic=int(data.get("outgoing_traffic") or 0),
            included_traffic=int(data.get("included_traffic") or 0),
        )

    @property
    def ratio(self) -> float:
        """Outgoing traffic as a fraction of included traffic."""
        if self.included_traffic <= 0:
            return 0.0
        return self.outgoing_traffic / self.included_traffic

    @property
    def usage_percentage(self) -> str:
        return format_percentage(self.ratio)

    @property
    def outgoing_tb(self) -> str:
        return bytes_to_tb(self.outgoing_traffic)

    @property
    def limit_tb(self) -> str:
        return bytes_to_tb(self.included_traffic)


@dataclass
class ClassificationResult:
    """Records paired with their tier, in fetch order."""

    entries: list[tuple[ServerUsageRecord, Tier]] = field(default_factory=list)

    def _bucket(self, tier: Tier) -> list[ServerUsageRecord]:
        return [record for record, record_tier in self.entries if record_tier == tier]

    @property
    def kill(self) -> list[ServerUsageRecord]:
        return self._bucket(Tier.KILL)

    @property
    def notify(self) -> list[ServerUsageRecord]:
        return self._bucket(Tier.NOTIFY)

    @property
    def all(self) -> list[ServerUsageRecord]:
        return [record for record, _ in self.entries]
