"""
Tests for Policy Convergence
============================
"""

import pytest

from pim_prime.access.audit import AuditEventType, AuditLogger, AuditResult
from pim_prime.api.authority import PolicyApplyResult
from pim_prime.core.config_manager import RolePolicyConfig, TenantConfig
from pim_prime.workflow.policy_service import PolicyService
from shared.pim_core.approvals import GroupRef, RoleDefinition
from shared.pim_core.exceptions import NotFoundError, PolicyNotFoundError, ValidationError
from shared.pim_core.policy_rules import RuleKind


class FakeDirectory:
    def __init__(self):
        self.groups = {"PIM Approvers": "g1"}
        self.role_calls = []

    def resolve_role(self, session, name, scope=None):
        self.role_calls.append((name, scope))
        if name == "Missing":
            raise NotFoundError(f"No role named '{name}'", resource_type="role", name=name)
        return RoleDefinition(id=f"{scope}/roleDefinitions/{name.lower()}", display_name=name)

    def resolve_group(self, session, name):
        if name not in self.groups:
            raise NotFoundError(f"No group named '{name}'", resource_type="group", name=name)
        return GroupRef(id=self.groups[name], display_name=name)


class RecordingAuthority:
    def __init__(self):
        self.applied = []
        self.missing_policy = set()

    def apply_policy(self, session, scope, role_definition_id, rule_set):
        if role_definition_id in self.missing_policy:
            raise PolicyNotFoundError("no policy", name=role_definition_id)
        self.applied.append((scope, role_definition_id, rule_set))
        return PolicyApplyResult(
            role_definition_id=role_definition_id,
            policy_id=f"{role_definition_id}/policy",
            applied=list(rule_set.kinds),
        )


@pytest.fixture
def directory():
    return FakeDirectory()


@pytest.fixture
def authority():
    return RecordingAuthority()


@pytest.fixture
def service(directory, authority, session, audit):
    return PolicyService(directory, authority, session, audit=audit, default_scope="/subscriptions/sub1")


class TestConverge:
    """Tests for converging one role."""

    def test_resolves_approver_group_by_name(self, service, authority):
        role = RolePolicyConfig(name="Owner", require_approval=True, approver_group="PIM Approvers")
        result = service.converge(role)

        _, role_id, rule_set = authority.applied[0]
        assert role_id == "/subscriptions/sub1/roleDefinitions/owner"
        assert rule_set.approval.primary_approvers == ("g1",)
        assert RuleKind.APPROVAL in result.applied

    def test_role_scope_overrides_default(self, service, directory):
        service.converge(RolePolicyConfig(name="Reader", scope="/subscriptions/other"))
        assert directory.role_calls == [("Reader", "/subscriptions/other")]

    def test_no_scope_anywhere(self, directory, authority, session):
        service = PolicyService(directory, authority, session)
        with pytest.raises(ValidationError):
            service.converge(RolePolicyConfig(name="Reader"))

    def test_unknown_approver_group(self, service, authority):
        role = RolePolicyConfig(name="Owner", require_approval=True, approver_group="Nobody")
        with pytest.raises(NotFoundError):
            service.converge(role)
        assert authority.applied == []

    def test_audits_success(self, service, audit):
        service.converge(RolePolicyConfig(name="Reader"))
        events = audit.query(event_types=[AuditEventType.POLICY_APPLIED])
        assert events[0].resource_id == "/subscriptions/sub1/roleDefinitions/reader/policy"

    def test_empty_audit_logger_still_records(self, directory, authority, session):
        audit = AuditLogger(buffer_size=10)
        assert len(audit) == 0
        service = PolicyService(directory, authority, session, audit=audit, default_scope="/subscriptions/sub1")
        service.converge(RolePolicyConfig(name="Reader"))
        assert len(audit) == 1


class TestConvergeAll:
    """Tests for converging every described role."""

    def test_collects_failures_without_aborting(self, service, authority, audit):
        authority.missing_policy.add("/subscriptions/sub1/roleDefinitions/reader")
        tenant = TenantConfig(scope="/subscriptions/sub1", roles=[
            RolePolicyConfig(name="Missing"),
            RolePolicyConfig(name="Reader"),
            RolePolicyConfig(name="Contributor"),
        ])

        report = service.converge_all(tenant)

        assert not report.ok
        assert set(report.failures) == {"Missing", "Reader"}
        assert isinstance(report.failures["Reader"], PolicyNotFoundError)
        assert list(report.results) == ["Contributor"]
        assert len(audit.query(result=AuditResult.FAILURE)) == 2

    def test_only_named_roles(self, service, authority):
        tenant = TenantConfig(roles=[RolePolicyConfig(name="Reader"), RolePolicyConfig(name="Owner")])
        report = service.converge_all(tenant, only=["owner"])
        assert list(report.results) == ["Owner"]
        assert len(authority.applied) == 1


class TestPlan:
    """Tests for dry-run planning."""

    def test_plan_contacts_nothing(self, service, directory, authority):
        role = RolePolicyConfig(name="Owner", require_approval=True, approver_group="PIM Approvers")
        rule_set = service.plan(role)
        assert rule_set.approval.primary_approvers == ("<PIM Approvers>",)
        assert directory.role_calls == []
        assert authority.applied == []
