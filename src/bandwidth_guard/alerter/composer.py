"""Alert report composition for bandwidth threshold breaches."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from bandwidth_guard.usage.models import ServerUsageRecord, ThresholdConfig

# Slack rejects messages with more than 50 blocks
MAX_BLOCKS = 50

KILLED_SECTION_TITLE = "Servers that were shut down:"
OTHER_SECTION_TITLE = "Other servers with high usage:"


class ReportKind(Enum):
    """Which tier drove the report, in priority order."""

    KILL = "kill"
    NOTIFY = "notify"
    FULL = "full"


HEADERS = {
    ReportKind.KILL: "🚨 Server Bandwidth Alert - Servers Killed 🚨",
    ReportKind.NOTIFY: "⚠️ Server Bandwidth Alert ⚠️",
    ReportKind.FULL: "📊 Server Bandwidth Report",
}


def format_server_line(record: ServerUsageRecord) -> str:
    return (
        f"{record.name} ({record.status}): {record.usage_percentage} used "
        f"({record.outgoing_tb} TB of {record.limit_tb} TB)"
    )


def format_killed_line(record: ServerUsageRecord) -> str:
    return (
        f"{record.name} (was {record.status}): {record.usage_percentage} used "
        f"({record.outgoing_tb} TB of {record.limit_tb} TB) - SHUT DOWN"
    )


def _section(text: str) -> dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


@dataclass
class AlertReport:
    """Composed alert, rendered both to the console and to chat blocks."""

    kind: ReportKind
    header: str
    subheader: str
    killed_lines: list[str] = field(default_factory=list)
    server_lines: list[str] = field(default_factory=list)

    def to_text(self) -> str:
        """Render the report as a plain-text console block."""
        lines = [self.header, self.subheader]
        if self.killed_lines:
            lines.append("")
            lines.append(KILLED_SECTION_TITLE)
            lines.extend(f"  - {line}" for line in self.killed_lines)
            if self.server_lines:
                lines.append("")
                lines.append(OTHER_SECTION_TITLE)
        elif self.server_lines:
            lines.append("")
        lines.extend(f"  - {line}" for line in self.server_lines)
        return "\n".join(lines)

    def to_blocks(self, max_blocks: int = MAX_BLOCKS) -> list[dict[str, Any]]:
        """Render the report as Slack Block Kit blocks.

        Server sections past max_blocks are dropped and summarized in a
        trailing "... and N more" section.
        """
        # (block, is_server_line)
        entries: list[tuple[dict[str, Any], bool]] = [
            (
                {
                    "type": "header",
                    "text": {"type": "plain_text", "text": self.header, "emoji": True},
                },
                False,
            ),
            (_section(self.subheader), False),
        ]

        if self.killed_lines:
            entries.append((_section(f"*{KILLED_SECTION_TITLE}*"), False))
            entries.extend((_section(line), True) for line in self.killed_lines)
            if self.server_lines:
                entries.append(({"type": "divider"}, False))
                entries.append((_section(f"*{OTHER_SECTION_TITLE}*"), False))

        entries.extend((_section(line), True) for line in self.server_lines)

        if len(entries) <= max_blocks:
            return [block for block, _ in entries]

        kept = entries[: max_blocks - 1]
        dropped = sum(1 for _, is_line in entries[max_blocks - 1 :] if is_line)
        blocks = [block for block, _ in kept]
        blocks.append(_section(f"... and {dropped} more server(s)"))
        return blocks


def compose(
    notify_list: list[ServerUsageRecord],
    all_list: list[ServerUsageRecord],
    killed_list: list[ServerUsageRecord],
    send_always: bool,
    thresholds: ThresholdConfig,
) -> AlertReport | None:
    """Build the alert report for one run.

    Priority: killed servers, then notify-tier servers, then (only with
    send_always) a full report of every server.

    Args:
        notify_list: NOTIFY-tier records
        all_list: Every fetched record
        killed_list: KILL-tier records whose shutdown succeeded
        send_always: Send a full report even without threshold breaches
        thresholds: Used for the subheader wording

    Returns:
        AlertReport, or None when there is nothing to report
    """
    notified = (
        f"{len(notify_list)} server(s) have exceeded "
        f"{thresholds.notify_threshold}% bandwidth usage:"
    )

    if killed_list:
        subheader = (
            f"{len(killed_list)} server(s) have been shut down for exceeding "
            f"{thresholds.kill_threshold}% bandwidth usage."
        )
        if notify_list:
            subheader += f"\n{notified}"
        return AlertReport(
            kind=ReportKind.KILL,
            header=HEADERS[ReportKind.KILL],
            subheader=subheader,
            killed_lines=[format_killed_line(r) for r in killed_list],
            server_lines=[format_server_line(r) for r in notify_list],
        )

    if notify_list:
        return AlertReport(
            kind=ReportKind.NOTIFY,
            header=HEADERS[ReportKind.NOTIFY],
            subheader=notified,
            server_lines=[format_server_line(r) for r in notify_list],
        )

    if send_always:
        return AlertReport(
            kind=ReportKind.FULL,
            header=HEADERS[ReportKind.FULL],
            subheader=f"Full report: showing all {len(all_list)} server(s)",
            server_lines=[format_server_line(r) for r in all_list],
        )

    return None
