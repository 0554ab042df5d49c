"""
PIM PRIME - Access Request Value Types
======================================

Value objects exchanged with the directory and the access authority:
role/group references, assignment requests, pending approvals, approval
stages and reviewer decisions. All of them live for a single workflow
invocation; nothing is cached between runs.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from .durations import days_to_iso
from .exceptions import ValidationError


@dataclass(frozen=True)
class RoleDefinition:
    """A role resolved from the directory."""

    id: str
    display_name: str


@dataclass(frozen=True)
class GroupRef:
    """A directory group, typically the approver group."""

    id: str
    display_name: str


class AssignmentType(Enum):
    """Eligible = may be activated on demand; Active = in force now."""

    ELIGIBLE = "Eligible"
    ACTIVE = "Active"


@dataclass(frozen=True)
class AssignmentRequest:
    """A request to grant a principal a role at a scope."""

    principal_id: str
    role_definition_id: str
    scope_id: str
    assignment_type: AssignmentType
    justification: str
    duration_days: int

    def __post_init__(self):
        if not isinstance(self.duration_days, int) or self.duration_days <= 0:
            raise ValidationError(
                f"duration_days must be a positive integer, got {self.duration_days!r}",
                field="duration_days",
            )
        for name in ("principal_id", "role_definition_id", "scope_id"):
            if not getattr(self, name):
                raise ValidationError(f"{name} is required", field=name)

    @property
    def duration(self) -> str:
        return days_to_iso(self.duration_days)


class ReviewResult(Enum):
    """Outcome a reviewer records against an approval stage."""

    APPROVE = "Approve"
    DENY = "Deny"
    NOT_REVIEWED = "NotReviewed"


@dataclass(frozen=True)
class PendingApproval:
    """Read-only snapshot of an activation request awaiting review."""

    approval_id: str
    created_on: Optional[datetime]
    requestor_display_name: str
    role_display_name: str
    resource_display_name: str
    resource_type: str
    justification: str = ""
    ticket_number: Optional[str] = None
    ticket_system: Optional[str] = None
    schedule_start: Optional[datetime] = None
    schedule_duration: Optional[str] = None
    status: str = "PendingApproval"

    @property
    def is_immediate(self) -> bool:
        """Requests without a scheduled start take effect on approval."""
        return self.schedule_start is None


@dataclass(frozen=True)
class ApprovalStage:
    """First unresolved stage of an approval."""

    stage_id: str
    approval_id: str


@dataclass(frozen=True)
class Decision:
    """A reviewer's decision on one approval stage."""

    review_result: ReviewResult
    justification: str

    def __post_init__(self):
        if not self.justification or not self.justification.strip():
            raise ValidationError(
                "Decision justification must not be blank",
                field="justification",
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "properties": {
                "justification": self.justification,
                "reviewResult": self.review_result.value,
            }
        }


__all__ = [
    "RoleDefinition",
    "GroupRef",
    "AssignmentType",
    "AssignmentRequest",
    "ReviewResult",
    "PendingApproval",
    "ApprovalStage",
    "Decision",
]
