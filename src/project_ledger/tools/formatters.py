"""Compact output formatters for MCP tool responses."""

from decimal import Decimal

from project_ledger.models.filters import ProjectSummary
from project_ledger.models.project import ProjectVersion


def format_money(amount: Decimal) -> str:
    """Format: 12,345.67."""
    return f"{amount:,.2f}"


def format_version_header(version: ProjectVersion) -> str:
    """Format: [<project-id>] v2 | Project name  [CANCELED]."""
    line = f"[{version.project_id}] v{version.version} | {version.name}"
    if version.is_canceled:
        line += "  [CANCELED]"
    return line


def format_version_figures(version: ProjectVersion) -> str:
    """Format: value 10,000.00 | margin 2,500.00 @ 25% = 625.00."""
    return (
        f"value {format_money(version.value)} | margin {format_money(version.margin)}"
        f" @ {version.probability_percent}% = {format_money(version.weighted_margin)}"
    )


def format_version_buckets(version: ProjectVersion) -> str:
    """Format: status 3 | due 2025 Q1 | pay 2025 Q2 | invoice 2025-03."""
    parts = [
        f"status {version.status_id}",
        f"due {version.due_quarter}",
        f"pay {version.payment_quarter}",
    ]
    if version.invoice_month:
        parts.append(f"invoice {version.invoice_month}")
    return " | ".join(parts)


def format_version_compact(version: ProjectVersion) -> str:
    """Header + figures + buckets. For project_list."""
    return "\n".join(
        [
            format_version_header(version),
            f"  {format_version_figures(version)}",
            f"  {format_version_buckets(version)}",
        ]
    )


def format_participants(version: ProjectVersion) -> str:
    """Owners marked with '*'."""
    if not version.participants:
        return "(none)"
    return ", ".join(
        f"{p.user_id}*" if p.is_owner else str(p.user_id) for p in version.participants
    )


def format_version_full(version: ProjectVersion) -> str:
    """Compact block plus ids, timestamps, participants and comment. For project_get."""
    lines = [
        format_version_compact(version),
        f"  effective {version.effective_at.isoformat()} | by {version.author_id}"
        f" | recorded {version.created_at.isoformat()}",
        f"  am {version.am_id} | client {version.client_id} | vendor {version.vendor_id}",
        f"  market {version.market_id} | architecture {version.architecture_id}",
        f"  participants: {format_participants(version)}",
    ]
    if version.comment:
        lines.append(f"  {version.comment}")
    return "\n".join(lines)


def format_history_line(version: ProjectVersion) -> str:
    """One line per version: v1 2025-01-01T00:00:00+00:00 | status 3 | margin 2,500.00 @ 25%."""
    flag = " [CANCELED]" if version.is_canceled else ""
    return (
        f"v{version.version} {version.effective_at.isoformat()} | status {version.status_id}"
        f" | margin {format_money(version.margin)} @ {version.probability_percent}%{flag}"
    )


def format_summary(summary: ProjectSummary, label: str = "current") -> str:
    """Multi-line aggregate block."""
    return "\n".join(
        [
            f"{summary.count} project(s) ({label})",
            f"  value: {format_money(summary.value_sum)}",
            f"  margin: {format_money(summary.margin_sum)}",
            f"  weighted margin: {summary.weighted_margin_sum:,.4f}",
        ]
    )


def format_result_list(
    formatted_entries: list[str],
    header: str | None = None,
    note: str | None = None,
) -> str:
    """Count + note + entries joined by blank lines."""
    if not formatted_entries:
        return "No results found."

    lines: list[str] = []
    if header:
        lines.append(header)
    lines.append(f"{len(formatted_entries)} result(s)")
    if note:
        lines.append(f"Note: {note}")
    lines.append("")
    lines.append("\n\n".join(formatted_entries))
    return "\n".join(lines)
