# PIM_FEAT: approval-workflow-001
"""
PIM PRIME - Approval Workflow
=============================

State machine that takes a reviewer from the pending list to a decision.

States:
    LISTING -> AWAITING_SELECTION -> SELECTED -> INSPECTING -> DECIDING
        -> APPROVED | DENIED
    INSPECTING -> CANCELLED -> LISTING

Inputs arrive through ``refresh()``, ``select()`` and ``decide()``; each
returns a WorkflowStep describing the new state for whatever renders it.
The machine itself never reads from or writes to a terminal.

Failure handling:
    - Bad selection: SelectionError is raised and the stale listing is
      dropped, so the next ``refresh()`` re-fetches.
    - Decision failure: reported on the step, state returns to LISTING.
      Decisions are never retried.

Author: PIM PRIME Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, FrozenSet, Optional, Union

from pim_prime.access.audit import AuditEventType, AuditLogger, AuditResult
from pim_prime.core.session import AuthSession
from pim_prime.workflow.catalog import CatalogListing, RequestCatalog
from shared.pim_core.approvals import ApprovalStage, Decision, PendingApproval, ReviewResult
from shared.pim_core.exceptions import (
    DecisionRejectedError,
    PIMError,
    SelectionError,
    TransportError,
    WorkflowStateError,
    describe_error,
)

logger = logging.getLogger("PIM_Workflow")


class WorkflowState(Enum):
    """Approval workflow states."""

    LISTING = auto()
    AWAITING_SELECTION = auto()
    SELECTED = auto()
    INSPECTING = auto()
    DECIDING = auto()
    APPROVED = auto()
    DENIED = auto()
    CANCELLED = auto()
    EXITED = auto()


WORKFLOW_TRANSITIONS: Dict[WorkflowState, FrozenSet[WorkflowState]] = {
    WorkflowState.LISTING: frozenset({
        WorkflowState.LISTING,
        WorkflowState.AWAITING_SELECTION,
    }),
    WorkflowState.AWAITING_SELECTION: frozenset({
        WorkflowState.SELECTED,
        WorkflowState.LISTING,
        WorkflowState.EXITED,
    }),
    WorkflowState.SELECTED: frozenset({
        WorkflowState.INSPECTING,
    }),
    WorkflowState.INSPECTING: frozenset({
        WorkflowState.DECIDING,
        WorkflowState.CANCELLED,
    }),
    WorkflowState.DECIDING: frozenset({
        WorkflowState.APPROVED,
        WorkflowState.DENIED,
        WorkflowState.LISTING,
    }),
    WorkflowState.APPROVED: frozenset({WorkflowState.LISTING, WorkflowState.EXITED}),
    WorkflowState.DENIED: frozenset({WorkflowState.LISTING, WorkflowState.EXITED}),
    WorkflowState.CANCELLED: frozenset({WorkflowState.LISTING, WorkflowState.EXITED}),
    WorkflowState.EXITED: frozenset(),
}


class ReviewAction(Enum):
    """What a reviewer can do with an inspected approval."""

    APPROVE = "approve"
    DENY = "deny"
    CANCEL = "cancel"

    @classmethod
    def parse(cls, raw: Union[str, "ReviewAction"]) -> "ReviewAction":
        """Accept the full word or its first letter, any case."""
        if isinstance(raw, cls):
            return raw
        token = (raw or "").strip().lower()
        for action in cls:
            if token in (action.value, action.value[0]):
                return action
        raise SelectionError(
            f"Unknown action '{raw}'; choose Approve, Deny or Cancel",
            raw_input=raw,
        )

    @property
    def review_result(self) -> Optional[ReviewResult]:
        return {
            ReviewAction.APPROVE: ReviewResult.APPROVE,
            ReviewAction.DENY: ReviewResult.DENY,
        }.get(self)


@dataclass
class WorkflowConfig:
    """Configuration for ApprovalWorkflow."""

    default_justification: str = "Reviewed with pim-prime (no justification entered)"
    cancel_tokens: FrozenSet[str] = field(default_factory=lambda: frozenset({"c", "cancel"}))


@dataclass
class WorkflowStep:
    """Result of one transition, for rendering."""

    state: WorkflowState
    listing: Optional[CatalogListing] = None
    selected: Optional[PendingApproval] = None
    decision: Optional[Decision] = None
    stage: Optional[ApprovalStage] = None
    message: str = ""
    error: Optional[PIMError] = None


class ApprovalWorkflow:
    """
    Reviewer workflow over the pending approval catalog.

    Example:
        workflow = ApprovalWorkflow(catalog, authority, session)

        step = workflow.refresh()
        if step.state == WorkflowState.AWAITING_SELECTION:
            step = workflow.select("1")
            step = workflow.decide("approve", "ok")
    """

    def __init__(
        self,
        catalog: RequestCatalog,
        authority,
        session: AuthSession,
        config: Optional[WorkflowConfig] = None,
        audit: Optional[AuditLogger] = None,
    ):
        self.catalog = catalog
        self.authority = authority
        self.session = session
        self.cfg = config or WorkflowConfig()
        self.audit = audit

        self._state = WorkflowState.LISTING
        self._listing: Optional[CatalogListing] = None
        self._selected: Optional[PendingApproval] = None

        self._stats = {
            "listings": 0,
            "approved": 0,
            "denied": 0,
            "cancelled": 0,
            "failed": 0,
        }

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def listing(self) -> Optional[CatalogListing]:
        return self._listing

    @property
    def selected(self) -> Optional[PendingApproval]:
        return self._selected

    def get_stats(self) -> Dict[str, int]:
        return dict(self._stats)

    def _transition(self, target: WorkflowState) -> None:
        allowed = WORKFLOW_TRANSITIONS[self._state]
        if target not in allowed:
            raise WorkflowStateError(
                f"Cannot move from {self._state.name} to {target.name}"
            )
        logger.debug(f"{self._state.name} -> {target.name}")
        self._state = target

    def _reset_to_listing(self) -> None:
        self._transition(WorkflowState.LISTING)
        self._listing = None
        self._selected = None

    # ==================== Listing ====================

    def refresh(self) -> WorkflowStep:
        """
        Fetch the pending approvals again.

        Returns a LISTING step when nothing is pending (or the fetch
        failed) and an AWAITING_SELECTION step otherwise.
        """
        if self._state != WorkflowState.LISTING:
            self._reset_to_listing()

        listing = self.catalog.list_pending(self.session)
        self._stats["listings"] += 1
        self._listing = listing
        self._selected = None

        if listing.failed:
            return WorkflowStep(
                state=self._state,
                listing=listing,
                message=describe_error("Listing pending requests", listing.error),
                error=listing.error,
            )

        if listing.is_empty:
            return WorkflowStep(
                state=self._state,
                listing=listing,
                message="Nothing pending your approval.",
            )

        self._transition(WorkflowState.AWAITING_SELECTION)
        return WorkflowStep(state=self._state, listing=listing)

    # ==================== Selection ====================

    def select(self, raw: str) -> WorkflowStep:
        """
        Choose a listed approval by its 1-based index, or cancel.

        Raises:
            SelectionError: not an integer in range; the listing is dropped
            WorkflowStateError: nothing is awaiting selection
        """
        if self._state != WorkflowState.AWAITING_SELECTION:
            raise WorkflowStateError(f"No listing awaiting selection (state {self._state.name})")

        token = (raw or "").strip()
        if token.lower() in self.cfg.cancel_tokens:
            self._transition(WorkflowState.EXITED)
            self._listing = None
            return WorkflowStep(state=self._state, message="Review cancelled.")

        count = len(self._listing)
        try:
            index = int(token)
        except ValueError:
            index = None

        if index is None or not 1 <= index <= count:
            self._reset_to_listing()
            raise SelectionError(
                f"Selection must be a number between 1 and {count}, got '{raw}'",
                raw_input=raw,
            )

        self._transition(WorkflowState.SELECTED)
        self._selected = self._listing.at(index)
        self._transition(WorkflowState.INSPECTING)
        return WorkflowStep(state=self._state, selected=self._selected)

    # ==================== Decision ====================

    def decide(
        self,
        action: Union[str, ReviewAction],
        justification: str = "",
    ) -> WorkflowStep:
        """
        Approve, deny or cancel the inspected approval.

        A blank justification is replaced with the configured default.
        Submission failures are returned on the step, not raised.

        Raises:
            SelectionError: unknown action; the state is unchanged
            WorkflowStateError: nothing is being inspected
        """
        if self._state != WorkflowState.INSPECTING:
            raise WorkflowStateError(f"No approval being inspected (state {self._state.name})")

        action = ReviewAction.parse(action)
        approval = self._selected

        if action is ReviewAction.CANCEL:
            self._transition(WorkflowState.CANCELLED)
            self._selected = None
            self._stats["cancelled"] += 1
            return WorkflowStep(state=self._state, message="Decision cancelled.")

        self._transition(WorkflowState.DECIDING)
        text = (justification or "").strip() or self.cfg.default_justification
        decision = Decision(review_result=action.review_result, justification=text)

        try:
            stage = self.authority.submit_decision(self.session, approval.approval_id, decision)
        except (DecisionRejectedError, TransportError) as e:
            self._stats["failed"] += 1
            logger.warning(f"Decision on {approval.approval_id} failed: {e}")
            self._audit_decision(approval, decision, AuditResult.FAILURE, error=e)
            self._reset_to_listing()
            return WorkflowStep(
                state=self._state,
                selected=approval,
                decision=decision,
                message=describe_error("Submitting decision", e),
                error=e,
            )

        if action is ReviewAction.APPROVE:
            self._transition(WorkflowState.APPROVED)
            self._stats["approved"] += 1
        else:
            self._transition(WorkflowState.DENIED)
            self._stats["denied"] += 1

        self._audit_decision(approval, decision, AuditResult.SUCCESS, stage=stage)
        self._selected = None
        return WorkflowStep(
            state=self._state,
            selected=approval,
            decision=decision,
            stage=stage,
            message=f"{decision.review_result.value} recorded for {approval.role_display_name}.",
        )

    def _audit_decision(
        self,
        approval: PendingApproval,
        decision: Decision,
        result: AuditResult,
        stage: Optional[ApprovalStage] = None,
        error: Optional[Exception] = None,
    ) -> None:
        if self.audit is None:
            return
        self.audit.log(
            AuditEventType.DECISION_SUBMITTED if error is None else AuditEventType.DECISION_FAILED,
            actor=self.session.account,
            tenant_id=self.session.tenant_id,
            resource_type="approval",
            resource_id=approval.approval_id,
            result=result,
            details={
                "review_result": decision.review_result.value,
                "role": approval.role_display_name,
                "requestor": approval.requestor_display_name,
                "stage_id": stage.stage_id if stage else None,
            },
            error_message=str(error) if error else None,
        )


__all__ = [
    "WorkflowState",
    "WORKFLOW_TRANSITIONS",
    "ReviewAction",
    "WorkflowConfig",
    "WorkflowStep",
    "ApprovalWorkflow",
]
