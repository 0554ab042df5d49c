"""
Access Authority Client

REST client for the backend that holds role management policies,
schedule requests and their approval stages.

Every method takes the caller's AuthSession explicitly and makes each
remote call exactly once.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from uuid import uuid4

import httpx

from pim_prime.api.config import Settings
from pim_prime.api.schemas import (
    ApprovalStageListResult,
    PolicyAssignmentListResult,
    PolicyResource,
    ScheduleRequestListResult,
)
from pim_prime.api.transport import AUTHORIZATION_PROVIDER, RestClient, odata_literal, parse_body
from pim_prime.core.session import AuthSession, TokenAudience
from shared.pim_core.approvals import (
    ApprovalStage,
    AssignmentRequest,
    AssignmentType,
    Decision,
    PendingApproval,
)
from shared.pim_core.exceptions import (
    DecisionRejectedError,
    PolicyNotFoundError,
    TransportError,
)
from shared.pim_core.policy_rules import ExpirationType, PolicyRuleSet, RuleKind

logger = logging.getLogger(__name__)

# Statuses on a stage PUT that mean the authority refused the decision
# itself rather than the call failing
_REJECTION_STATUSES = frozenset({400, 403, 404, 409, 412, 422})


@dataclass
class PolicyApplyResult:
    """Outcome of converging one role's activation policy."""

    role_definition_id: str
    policy_id: str
    applied: List[RuleKind] = field(default_factory=list)
    skipped: List[RuleKind] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "role_definition_id": self.role_definition_id,
            "policy_id": self.policy_id,
            "applied": [k.value for k in self.applied],
            "skipped": [k.value for k in self.skipped],
        }


class AccessAuthority:
    """
    Client for the access authority.

    Example:
        authority = AccessAuthority(settings)
        for approval in authority.list_pending(session):
            print(approval.role_display_name)
    """

    def __init__(self, settings: Settings, client: Optional[httpx.Client] = None):
        self.settings = settings
        self.rest = RestClient(
            settings.AUTHORITY_BASE_URL,
            TokenAudience.AUTHORITY,
            client=client,
            timeout=settings.REQUEST_TIMEOUT_SEC,
        )

    # ==================== Requests & Approvals ====================

    def list_pending(self, session: AuthSession) -> List[PendingApproval]:
        """
        Fetch every request the session's principal may approve.

        Raises:
            TransportError: the fetch failed
        """
        operation = "list pending approvals"
        pending: List[PendingApproval] = []

        pages = self.rest.iter_pages(
            session,
            f"/{AUTHORIZATION_PROVIDER}/roleAssignmentScheduleRequests",
            operation,
            params={
                "api-version": self.settings.SCHEDULE_REQUESTS_API_VERSION,
                "$filter": "asApprover()",
            },
        )
        for page in pages:
            result = parse_body(ScheduleRequestListResult, page, operation)
            for request in result.value:
                approval = request.to_pending_approval()
                if approval is not None:
                    pending.append(approval)

        logger.info(f"Fetched {len(pending)} pending approvals")
        return pending

    def get_open_stage(self, session: AuthSession, approval_id: str) -> ApprovalStage:
        """
        Resolve the approval's current open stage.

        The authority lists unresolved stages oldest first and always
        accepts decisions against the first one.
        """
        operation = "resolve approval stage"
        body = self.rest.get(
            session,
            f"{approval_id.rstrip('/')}/stages",
            operation,
            params={"api-version": self.settings.APPROVALS_API_VERSION},
        )
        stages = parse_body(ApprovalStageListResult, body, operation)
        if not stages.value:
            raise DecisionRejectedError(
                f"Approval has no open stage: {approval_id}",
                approval_id=approval_id,
            )
        return ApprovalStage(stage_id=stages.value[0].id, approval_id=approval_id)

    def submit_decision(
        self,
        session: AuthSession,
        approval_id: str,
        decision: Decision,
    ) -> ApprovalStage:
        """
        Record a decision against the approval's open stage.

        Not idempotent: a second decision on a resolved stage is refused by
        the authority and raised as DecisionRejectedError.

        Raises:
            DecisionRejectedError: the authority refused the decision
            TransportError: the call itself failed
        """
        stage = self.get_open_stage(session, approval_id)
        operation = "submit decision"

        try:
            self.rest.put(
                session,
                stage.stage_id,
                operation,
                decision.to_dict(),
                params={"api-version": self.settings.APPROVALS_API_VERSION},
            )
        except TransportError as e:
            if e.status_code in _REJECTION_STATUSES:
                raise DecisionRejectedError(
                    e.message,
                    approval_id=approval_id,
                    status_code=e.status_code,
                ) from e
            raise

        logger.info(
            f"Decision {decision.review_result.value} recorded on stage {stage.stage_id}"
        )
        return stage

    # ==================== Policies ====================

    def get_policy_id(self, session: AuthSession, scope: str, role_definition_id: str) -> str:
        """
        Id of the management policy assigned to a role at a scope.

        Raises:
            PolicyNotFoundError: no policy is assigned
        """
        operation = "find role policy"
        body = self.rest.get(
            session,
            f"{scope.rstrip('/')}/{AUTHORIZATION_PROVIDER}/roleManagementPolicyAssignments",
            operation,
            params={
                "api-version": self.settings.POLICIES_API_VERSION,
                "$filter": f"roleDefinitionId eq {odata_literal(role_definition_id)}",
            },
        )
        assignments = parse_body(PolicyAssignmentListResult, body, operation)
        for assignment in assignments.value:
            if assignment.properties.policy_id:
                return assignment.properties.policy_id

        raise PolicyNotFoundError(
            f"No activation policy assigned to role {role_definition_id} at {scope}",
            name=role_definition_id,
        )

    def get_policy(self, session: AuthSession, policy_id: str) -> PolicyResource:
        """
        Fetch a policy document.

        Raises:
            PolicyNotFoundError: the policy does not exist
        """
        operation = "read role policy"
        try:
            body = self.rest.get(
                session,
                policy_id,
                operation,
                params={"api-version": self.settings.POLICIES_API_VERSION},
            )
        except TransportError as e:
            if e.status_code == 404:
                raise PolicyNotFoundError(
                    f"Policy not found: {policy_id}", name=policy_id
                ) from e
            raise
        return parse_body(PolicyResource, body, operation)

    def addressable_rules(self, policy: PolicyResource) -> Dict[RuleKind, str]:
        """Activation rules present on the policy, keyed by kind."""
        namespace = self.settings.ACTIVATION_RULE_NAMESPACE
        rules: Dict[RuleKind, str] = {}
        for rule in policy.properties.rules:
            kind = RuleKind.from_rule_id(rule.id)
            if kind is not None and rule.id == kind.rule_id(namespace):
                rules[kind] = rule.id
        return rules

    def apply_policy(
        self,
        session: AuthSession,
        scope: str,
        role_definition_id: str,
        rule_set: PolicyRuleSet,
    ) -> PolicyApplyResult:
        """
        Patch a role's activation policy with a rule set.

        Only rule kinds the policy already carries in the activation
        namespace are patched; the rest are reported as skipped. Policies
        are never created here.

        Raises:
            PolicyNotFoundError: the role has no policy yet
            TransportError: a read or patch failed
        """
        policy_id = self.get_policy_id(session, scope, role_definition_id)
        policy = self.get_policy(session, policy_id)
        addressable = self.addressable_rules(policy)

        result = PolicyApplyResult(role_definition_id=role_definition_id, policy_id=policy_id)
        for rule in rule_set:
            rule_id = addressable.get(rule.kind)
            if rule_id is None:
                result.skipped.append(rule.kind)
                continue

            self.rest.patch(
                session,
                f"{policy_id.rstrip('/')}/rules/{rule_id}",
                f"update {rule.kind.value} rule",
                {"id": rule_id, **rule.to_dict()},
                params={"api-version": self.settings.POLICIES_API_VERSION},
            )
            result.applied.append(rule.kind)

        logger.info(
            f"Policy {policy_id}: applied {len(result.applied)} rules, "
            f"skipped {len(result.skipped)}"
        )
        return result

    # ==================== Assignments ====================

    def submit_assignment(self, session: AuthSession, request: AssignmentRequest) -> str:
        """
        Submit an eligible or active assignment request.

        Sent once; a duplicate submission is the caller's responsibility.

        Returns:
            Resource id of the created schedule request
        """
        collection = (
            "roleEligibilityScheduleRequests"
            if request.assignment_type is AssignmentType.ELIGIBLE
            else "roleAssignmentScheduleRequests"
        )
        url = f"{request.scope_id.rstrip('/')}/{AUTHORIZATION_PROVIDER}/{collection}/{uuid4()}"
        body = {
            "properties": {
                "principalId": request.principal_id,
                "roleDefinitionId": request.role_definition_id,
                "requestType": "AdminAssign",
                "justification": request.justification,
                "scheduleInfo": {
                    "expiration": {
                        "type": ExpirationType.AFTER_DURATION.value,
                        "duration": request.duration,
                    },
                },
            }
        }

        response = self.rest.put(
            session,
            url,
            "submit assignment",
            body,
            params={"api-version": self.settings.SCHEDULE_REQUESTS_API_VERSION},
        )
        request_id = response.get("id") or url
        logger.info(
            f"{request.assignment_type.value} assignment submitted for "
            f"{request.principal_id}: {request_id}"
        )
        return request_id

    def close(self) -> None:
        self.rest.close()


__all__ = ["AccessAuthority", "PolicyApplyResult"]
