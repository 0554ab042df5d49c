"""
PIM PRIME Test Configuration
============================

Pytest fixtures and helpers shared by the unit tests.
"""

import json
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from pim_prime.access.audit import AuditLogger
from pim_prime.api.config import Settings
from pim_prime.core.session import AuthSession, TokenAudience, static_token_provider
from shared.pim_core.approvals import ApprovalStage, Decision, PendingApproval
from shared.pim_core.exceptions import TransportError

AUTHORITY = "https://management.azure.com"
DIRECTORY = "https://graph.microsoft.com/v1.0"
SCOPE = "/subscriptions/00000000-0000-0000-0000-000000000001"


class MockService:
    """
    Routes requests by (method, path) to canned JSON responses.

    Each route holds a queue; the last response repeats once the queue
    is down to one. Unrouted requests get a 404 error body.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], List[Tuple[int, Any]]] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, json_body: Any = None, status: int = 200) -> "MockService":
        self.routes.setdefault((method, path), []).append((status, json_body))
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(
                404,
                json={"error": {"code": "NotFound", "message": f"no route {request.url.path}"}},
            )
        status, body = queue.pop(0) if len(queue) > 1 else queue[0]
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    def sent(self, method: str, path: Optional[str] = None) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and (path is None or r.url.path == path)
        ]

    @staticmethod
    def body(request: httpx.Request) -> Dict[str, Any]:
        return json.loads(request.content)


class FakeAuthority:
    """In-memory stand-in for AccessAuthority in workflow tests."""

    def __init__(self, approvals: Optional[List[PendingApproval]] = None):
        self.approvals = list(approvals or [])
        self.list_error: Optional[Exception] = None
        self.decision_error: Optional[Exception] = None
        self.list_calls = 0
        self.decisions: List[Tuple[str, Decision]] = []

    def list_pending(self, session: AuthSession) -> List[PendingApproval]:
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return list(self.approvals)

    def submit_decision(self, session: AuthSession, approval_id: str, decision: Decision) -> ApprovalStage:
        self.decisions.append((approval_id, decision))
        if self.decision_error is not None:
            raise self.decision_error
        return ApprovalStage(stage_id=f"{approval_id}/stages/s1", approval_id=approval_id)


@pytest.fixture
def settings():
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        TENANT_ID="contoso.onmicrosoft.com",
        DEFAULT_SCOPE=SCOPE,
        MANAGEMENT_TOKEN="mgmt-token",
        DIRECTORY_TOKEN="graph-token",
    )


@pytest.fixture
def session():
    """Connected reviewer session with tokens for both audiences."""
    return AuthSession(
        tenant_id="contoso.onmicrosoft.com",
        account="reviewer@contoso.com",
        token_provider=static_token_provider({
            TokenAudience.AUTHORITY: "mgmt-token",
            TokenAudience.DIRECTORY: "graph-token",
        }),
    )


@pytest.fixture
def audit():
    return AuditLogger(buffer_size=50)


@pytest.fixture
def mock_service():
    return MockService()


@pytest.fixture
def make_approval() -> Callable[..., PendingApproval]:
    """Factory for PendingApproval snapshots."""

    def factory(approval_id: str = "a1", start: Optional[datetime] = None, **overrides) -> PendingApproval:
        values = dict(
            approval_id=f"/providers/Microsoft.Authorization/roleAssignmentApprovals/{approval_id}",
            created_on=datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc),
            requestor_display_name="Alex Doe",
            role_display_name="Contributor",
            resource_display_name="Production",
            resource_type="subscription",
            justification="Deploy hotfix",
            schedule_start=start,
            schedule_duration="PT8H",
        )
        values.update(overrides)
        return PendingApproval(**values)

    return factory


@pytest.fixture
def fake_authority():
    return FakeAuthority()


@pytest.fixture
def transport_error():
    return TransportError("list pending approvals: HTTP 503 Service Unavailable", status_code=503)
