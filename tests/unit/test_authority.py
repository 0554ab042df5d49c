"""
Tests for the Access Authority Client
=====================================

HTTP behaviour is exercised against httpx.MockTransport.
"""

import httpx
import pytest

from pim_prime.api.authority import AccessAuthority
from shared.pim_core.approvals import (
    AssignmentRequest,
    AssignmentType,
    Decision,
    ReviewResult,
)
from shared.pim_core.exceptions import (
    DecisionRejectedError,
    PolicyNotFoundError,
    SessionClosedError,
    TransportError,
)
from shared.pim_core.policy_builder import PolicyBuilder, PolicySettings
from shared.pim_core.policy_rules import ExpirationType, RuleKind

PROVIDER = "/providers/Microsoft.Authorization"
REQUESTS = f"{PROVIDER}/roleAssignmentScheduleRequests"
APPROVAL_ID = f"{PROVIDER}/roleAssignmentApprovals/ap1"
SCOPE = "/subscriptions/00000000-0000-0000-0000-000000000001"
ROLE_ID = f"{SCOPE}{PROVIDER}/roleDefinitions/b24988ac"
POLICY_ID = f"{SCOPE}{PROVIDER}/roleManagementPolicies/pol1"


def schedule_request(name, approval_id=None, start=None):
    return {
        "id": f"{REQUESTS}/{name}",
        "name": name,
        "properties": {
            "approvalId": approval_id,
            "status": "PendingApproval",
            "justification": "Need access",
            "createdOn": "2024-05-01T08:00:00Z",
            "scheduleInfo": {
                "startDateTime": start,
                "expiration": {"type": "AfterDuration", "duration": "PT8H"},
            },
            "ticketInfo": {"ticketNumber": "INC-42", "ticketSystem": "ServiceNow"},
            "expandedProperties": {
                "principal": {"id": "u1", "displayName": "Alex Doe", "type": "User"},
                "roleDefinition": {"id": "r1", "displayName": "Contributor"},
                "scope": {"id": SCOPE, "displayName": "Production", "type": "subscription"},
            },
        },
    }


@pytest.fixture
def authority(settings, mock_service):
    return AccessAuthority(settings, client=mock_service.client())


class TestListPending:
    """Tests for fetching approvable requests."""

    def test_maps_requests_to_pending_approvals(self, authority, mock_service, session):
        mock_service.add("GET", REQUESTS, {"value": [
            schedule_request("r1", approval_id=APPROVAL_ID, start="2024-06-01T09:00:00Z"),
        ]})

        pending = authority.list_pending(session)

        assert len(pending) == 1
        approval = pending[0]
        assert approval.approval_id == APPROVAL_ID
        assert approval.requestor_display_name == "Alex Doe"
        assert approval.role_display_name == "Contributor"
        assert approval.resource_display_name == "Production"
        assert approval.ticket_number == "INC-42"
        assert approval.schedule_duration == "PT8H"
        assert approval.schedule_start is not None

    def test_filters_as_approver_with_bearer_token(self, authority, mock_service, session):
        mock_service.add("GET", REQUESTS, {"value": []})
        authority.list_pending(session)

        request = mock_service.sent("GET", REQUESTS)[0]
        assert request.url.params["$filter"] == "asApprover()"
        assert request.headers["Authorization"] == "Bearer mgmt-token"

    def test_skips_requests_without_approval(self, authority, mock_service, session):
        mock_service.add("GET", REQUESTS, {"value": [schedule_request("r1")]})
        assert authority.list_pending(session) == []

    def test_follows_next_link(self, authority, mock_service, session):
        mock_service.add("GET", REQUESTS, {
            "value": [schedule_request("r1", approval_id=f"{APPROVAL_ID}1")],
            "nextLink": f"https://management.azure.com{REQUESTS}?$skiptoken=abc",
        })
        mock_service.add("GET", REQUESTS, {
            "value": [schedule_request("r2", approval_id=f"{APPROVAL_ID}2")],
        })

        pending = authority.list_pending(session)

        assert [a.approval_id for a in pending] == [f"{APPROVAL_ID}1", f"{APPROVAL_ID}2"]
        assert mock_service.sent("GET", REQUESTS)[1].url.params["$skiptoken"] == "abc"

    def test_http_error_raises_transport_error(self, authority, mock_service, session):
        mock_service.add("GET", REQUESTS, {"error": {"code": "ServerBusy", "message": "try later"}}, status=503)
        with pytest.raises(TransportError) as exc:
            authority.list_pending(session)
        assert exc.value.status_code == 503
        assert "ServerBusy" in str(exc.value)

    def test_network_error_raises_transport_error(self, settings, session):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        authority = AccessAuthority(settings, client=httpx.Client(transport=httpx.MockTransport(refuse)))
        with pytest.raises(TransportError) as exc:
            authority.list_pending(session)
        assert exc.value.status_code is None

    def test_disconnected_session_fails_before_sending(self, authority, mock_service, session):
        session.disconnect()
        with pytest.raises(SessionClosedError):
            authority.list_pending(session)
        assert mock_service.requests == []


class TestSubmitDecision:
    """Tests for recording decisions against approval stages."""

    def test_approve_puts_to_first_stage(self, authority, mock_service, session):
        """Approve with justification "ok" goes to stages[0].id."""
        mock_service.add("GET", f"{APPROVAL_ID}/stages", {"value": [
            {"id": f"{APPROVAL_ID}/stages/st1", "name": "st1"},
            {"id": f"{APPROVAL_ID}/stages/st2", "name": "st2"},
        ]})
        mock_service.add("PUT", f"{APPROVAL_ID}/stages/st1", {})

        stage = authority.submit_decision(
            session, APPROVAL_ID, Decision(ReviewResult.APPROVE, "ok")
        )

        assert stage.stage_id == f"{APPROVAL_ID}/stages/st1"
        puts = mock_service.sent("PUT")
        assert len(puts) == 1
        assert puts[0].url.path == f"{APPROVAL_ID}/stages/st1"
        assert mock_service.body(puts[0]) == {
            "properties": {"justification": "ok", "reviewResult": "Approve"}
        }

    def test_no_open_stage_is_rejected(self, authority, mock_service, session):
        mock_service.add("GET", f"{APPROVAL_ID}/stages", {"value": []})
        with pytest.raises(DecisionRejectedError):
            authority.submit_decision(session, APPROVAL_ID, Decision(ReviewResult.DENY, "no"))
        assert mock_service.sent("PUT") == []

    def test_conflict_is_rejected(self, authority, mock_service, session):
        """A second decision on a resolved stage surfaces as a rejection."""
        mock_service.add("GET", f"{APPROVAL_ID}/stages", {"value": [{"id": f"{APPROVAL_ID}/stages/st1"}]})
        mock_service.add(
            "PUT",
            f"{APPROVAL_ID}/stages/st1",
            {"error": {"code": "RoleAssignmentRequestAlreadyReviewed", "message": "done"}},
            status=409,
        )
        with pytest.raises(DecisionRejectedError) as exc:
            authority.submit_decision(session, APPROVAL_ID, Decision(ReviewResult.APPROVE, "ok"))
        assert exc.value.status_code == 409

    def test_server_error_is_transport_error(self, authority, mock_service, session):
        mock_service.add("GET", f"{APPROVAL_ID}/stages", {"value": [{"id": f"{APPROVAL_ID}/stages/st1"}]})
        mock_service.add("PUT", f"{APPROVAL_ID}/stages/st1", None, status=502)
        with pytest.raises(TransportError):
            authority.submit_decision(session, APPROVAL_ID, Decision(ReviewResult.APPROVE, "ok"))
        assert len(mock_service.sent("PUT")) == 1


class TestApplyPolicy:
    """Tests for patching activation policies."""

    ASSIGNMENTS = f"{SCOPE}{PROVIDER}/roleManagementPolicyAssignments"

    def test_patches_only_addressable_rules(self, authority, mock_service, session):
        mock_service.add("GET", self.ASSIGNMENTS, {"value": [
            {"id": "pa1", "properties": {"policyId": POLICY_ID, "roleDefinitionId": ROLE_ID}},
        ]})
        mock_service.add("GET", POLICY_ID, {"id": POLICY_ID, "properties": {"rules": [
            {"id": "Mfa_EndUser_Assignment", "ruleType": "RoleManagementPolicyEnablementRule"},
            {"id": "Expiration_EndUser_Assignment", "ruleType": "RoleManagementPolicyExpirationRule"},
            {"id": "Expiration_Admin_Eligibility", "ruleType": "RoleManagementPolicyExpirationRule"},
        ]}})
        mock_service.add("PATCH", f"{POLICY_ID}/rules/Mfa_EndUser_Assignment", {})
        mock_service.add("PATCH", f"{POLICY_ID}/rules/Expiration_EndUser_Assignment", {})

        rule_set = PolicyBuilder().build(PolicySettings(require_mfa=True, max_activation_hours=8))
        result = authority.apply_policy(session, SCOPE, ROLE_ID, rule_set)

        assert result.policy_id == POLICY_ID
        assert result.applied == [RuleKind.MFA, RuleKind.EXPIRATION]
        assert RuleKind.APPROVAL in result.skipped
        assert len(result.skipped) == 5

        patches = mock_service.sent("PATCH")
        assert [p.url.path.rsplit("/", 1)[-1] for p in patches] == [
            "Mfa_EndUser_Assignment",
            "Expiration_EndUser_Assignment",
        ]
        expiration = mock_service.body(patches[1])
        assert expiration["id"] == "Expiration_EndUser_Assignment"
        assert expiration["ruleType"] == "RoleManagementPolicyExpirationRule"
        assert expiration["maximumDuration"] == "PT8H"

    def test_filters_assignments_by_role(self, authority, mock_service, session):
        mock_service.add("GET", self.ASSIGNMENTS, {"value": []})
        with pytest.raises(PolicyNotFoundError):
            authority.get_policy_id(session, SCOPE, ROLE_ID)
        request = mock_service.sent("GET", self.ASSIGNMENTS)[0]
        assert request.url.params["$filter"] == f"roleDefinitionId eq '{ROLE_ID}'"

    def test_missing_policy_document(self, authority, mock_service, session):
        with pytest.raises(PolicyNotFoundError):
            authority.get_policy(session, POLICY_ID)


class TestSubmitAssignment:
    """Tests for assignment requests."""

    def test_eligible_assignment(self, authority, mock_service, session):
        def handler(request):
            mock_service.requests.append(request)
            return httpx.Response(201, json={"id": request.url.path})

        authority = AccessAuthority(authority.settings, client=httpx.Client(transport=httpx.MockTransport(handler)))
        request_id = authority.submit_assignment(session, AssignmentRequest(
            principal_id="u1",
            role_definition_id=ROLE_ID,
            scope_id=SCOPE,
            assignment_type=AssignmentType.ELIGIBLE,
            justification="On-call rota",
            duration_days=30,
        ))

        sent = mock_service.requests[0]
        assert sent.method == "PUT"
        assert f"{PROVIDER}/roleEligibilityScheduleRequests/" in sent.url.path
        assert request_id == sent.url.path
        body = mock_service.body(sent)["properties"]
        assert body["requestType"] == "AdminAssign"
        assert body["scheduleInfo"]["expiration"] == {
            "type": ExpirationType.AFTER_DURATION.value,
            "duration": "P30D",
        }
