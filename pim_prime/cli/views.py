"""CLI views: render listings and approval detail as text."""

from datetime import datetime
from typing import List, Optional

from pim_prime.workflow.catalog import CatalogListing
from shared.pim_core.approvals import PendingApproval
from shared.pim_core.durations import describe_duration

W = 80


def fmt_time(value: Optional[datetime], empty: str = "immediately") -> str:
    """Format a timestamp for display (e.g. 2024-05-01 09:00 UTC)."""
    if value is None:
        return empty
    if value.tzinfo is None:
        return value.strftime("%Y-%m-%d %H:%M")
    return value.strftime("%Y-%m-%d %H:%M %Z").strip()


def render_listing(listing: CatalogListing) -> str:
    """Numbered list of pending approvals, 1-based."""
    lines: List[str] = []
    lines.append("")
    lines.append("=" * W)
    lines.append("  PENDING APPROVALS".center(W))
    lines.append("=" * W)
    lines.append("")
    lines.append(f"   {'#':>3}  {'Requestor':<24} {'Role':<24} {'Starts':<20}")
    lines.append(f"   {'-' * 3}  {'-' * 24} {'-' * 24} {'-' * 20}")
    for i, approval in enumerate(listing, 1):
        lines.append(
            f"   {i:>3}  {approval.requestor_display_name[:24]:<24} "
            f"{approval.role_display_name[:24]:<24} "
            f"{fmt_time(approval.schedule_start):<20}"
        )
    lines.append("")
    return "\n".join(lines)


def render_detail(approval: PendingApproval) -> str:
    """Full detail of one approval."""
    ticket = "-"
    if approval.ticket_number:
        ticket = approval.ticket_number
        if approval.ticket_system:
            ticket = f"{ticket} ({approval.ticket_system})"

    rows = [
        ("Requestor", approval.requestor_display_name),
        ("Role", approval.role_display_name),
        ("Resource", f"{approval.resource_display_name} [{approval.resource_type}]"),
        ("Requested", fmt_time(approval.created_on, empty="-")),
        ("Starts", fmt_time(approval.schedule_start)),
        ("Duration", describe_duration(approval.schedule_duration)),
        ("Ticket", ticket),
        ("Status", approval.status),
        ("Justification", approval.justification or "-"),
    ]

    lines = ["", "-" * W, f"  {approval.role_display_name}", "-" * W]
    for label, value in rows:
        lines.append(f"  {label + ':':<15} {value}")
    lines.append("")
    return "\n".join(lines)
