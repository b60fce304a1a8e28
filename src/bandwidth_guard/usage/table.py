"""Console table of server bandwidth usage."""

from .models import ClassificationResult


def format_usage_table(result: ClassificationResult) -> str:
    """Format every classified server as an ASCII table."""
    name_width = max([len("Name")] + [len(r.name) for r in result.all])
    status_width = max([len("Status")] + [len(r.status) for r in result.all])

    lines = []
    lines.append(
        f"{'Name':<{name_width}}  {'Status':<{status_width}}  "
        f"{'Outgoing (TB)':>13}  {'Limit (TB)':>10}  {'Usage %':>10}  {'Action'}"
    )
    lines.append("-" * len(lines[0]))

    for record, tier in result.entries:
        lines.append(
            f"{record.name:<{name_width}}  {record.status:<{status_width}}  "
            f"{record.outgoing_tb:>13}  {record.limit_tb:>10}  "
            f"{record.usage_percentage:>10}  {tier.value}"
        )

    if not result.entries:
        lines.append("(no servers)")

    return "\n".join(lines)
