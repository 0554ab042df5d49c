# PIM_FEAT: request-catalog-001
"""
PIM PRIME - Request Catalog
===========================

Fetches the approvals a reviewer may act on and orders them for
presentation.

Ordering:
    Ascending by scheduled start. Requests without a scheduled start take
    effect immediately on approval and sort last, as if they started at
    the maximum representable timestamp, so reviewers triage scheduled
    windows first. Ties keep the authority's order.

Every listing re-fetches; there is no cache. A failed fetch produces an
empty listing that carries the failure instead of raising.

Author: PIM PRIME Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Iterator, List, Optional, Tuple

from pim_prime.access.audit import AuditEventType, AuditLogger, AuditResult
from pim_prime.core.session import AuthSession
from shared.pim_core.approvals import PendingApproval
from shared.pim_core.exceptions import TransportError

logger = logging.getLogger("PIM_Catalog")

LATEST_START = datetime.max.replace(tzinfo=timezone.utc)


def schedule_sort_key(approval: PendingApproval) -> datetime:
    """Scheduled start in UTC; immediate requests map to LATEST_START."""
    start = approval.schedule_start
    if start is None:
        return LATEST_START
    if start.tzinfo is None:
        return start.replace(tzinfo=timezone.utc)
    return start.astimezone(timezone.utc)


def order_pending(approvals: Iterable[PendingApproval]) -> List[PendingApproval]:
    """Stable sort by scheduled start with immediate requests last."""
    return sorted(approvals, key=schedule_sort_key)


@dataclass(frozen=True)
class CatalogListing:
    """
    One fetch of the pending approvals.

    ``failed`` separates a fetch error from a genuinely empty queue; both
    iterate as empty.
    """

    approvals: Tuple[PendingApproval, ...] = ()
    error: Optional[TransportError] = None
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __iter__(self) -> Iterator[PendingApproval]:
        return iter(self.approvals)

    def __len__(self) -> int:
        return len(self.approvals)

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def is_empty(self) -> bool:
        return not self.approvals

    def at(self, index: int) -> PendingApproval:
        """Approval at a 1-based display index."""
        if not 1 <= index <= len(self.approvals):
            raise IndexError(index)
        return self.approvals[index - 1]


class RequestCatalog:
    """
    Pending approvals for a reviewer.

    Example:
        catalog = RequestCatalog(authority, audit)

        listing = catalog.list_pending(session)
        if listing.failed:
            print(f"Could not fetch requests: {listing.error}")
        for index, approval in enumerate(listing, 1):
            print(index, approval.role_display_name)
    """

    def __init__(self, authority, audit: Optional[AuditLogger] = None):
        self.authority = authority
        self.audit = audit

    def iter_pending(self, session: AuthSession) -> Iterator[PendingApproval]:
        """
        Ordered pending approvals as a one-shot iterator.

        Nothing is fetched until the first item is requested.

        Raises:
            TransportError: the fetch failed
        """
        approvals = self.authority.list_pending(session)
        yield from order_pending(approvals)

    def list_pending(self, session: AuthSession) -> CatalogListing:
        """Fetch and order pending approvals; never raises on fetch failure."""
        try:
            approvals = tuple(self.iter_pending(session))
        except TransportError as e:
            logger.warning(f"Pending approval fetch failed: {e}")
            if self.audit is not None:
                self.audit.log(
                    AuditEventType.CATALOG_FETCH_FAILED,
                    actor=session.account,
                    tenant_id=session.tenant_id,
                    resource_type="approval",
                    result=AuditResult.ERROR,
                    error_message=str(e),
                )
            return CatalogListing(error=e)

        logger.debug(f"Catalog listing: {len(approvals)} pending")
        return CatalogListing(approvals=approvals)


__all__ = [
    "LATEST_START",
    "schedule_sort_key",
    "order_pending",
    "CatalogListing",
    "RequestCatalog",
]
