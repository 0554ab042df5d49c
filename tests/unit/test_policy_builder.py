"""
Tests for the Activation Policy Builder
=======================================
"""

import pytest

from shared.pim_core.exceptions import ValidationError
from shared.pim_core.policy_builder import (
    APPROVAL_STAGE_TIMEOUT_DAYS,
    PolicyBuilder,
    PolicyBuilderConfig,
    PolicySettings,
)
from shared.pim_core.policy_rules import RuleKind


@pytest.fixture
def builder():
    return PolicyBuilder()


class TestBuild:
    """Tests for complete rule set construction."""

    def test_all_seven_kinds_present(self, builder):
        rule_set = builder.build(PolicySettings())
        assert rule_set.kinds == list(RuleKind)

    def test_flags_mirrored(self, builder):
        rule_set = builder.build(PolicySettings(
            require_justification=False,
            require_ticket=True,
            require_mfa=True,
        ))
        assert rule_set.justification.required is False
        assert rule_set.ticketing.required is True
        assert rule_set.mfa.required is True

    def test_authentication_context_disabled(self, builder):
        assert builder.build(PolicySettings()).authentication_context.enabled is False

    def test_enablement_defaults_empty(self, builder):
        assert builder.build(PolicySettings()).enablement.enabled_rules == ()

    def test_expiration_uses_max_hours_in_both_fields(self, builder):
        """max_activation_hours=8 appears as PT8H twice."""
        body = builder.build(PolicySettings(max_activation_hours=8)).expiration.to_dict()
        assert body["maximumDuration"] == "PT8H"
        assert body["expiration"]["duration"] == "PT8H"
        assert body["expiration"]["type"] == "AfterDateTime"
        assert body["expiration"]["endDateTime"] is None

    @pytest.mark.parametrize("hours", [0, -4])
    def test_rejects_non_positive_hours(self, builder, hours):
        with pytest.raises(ValidationError):
            builder.build(PolicySettings(max_activation_hours=hours))


class TestApprovalAsymmetry:
    """Tests for how approval settings shape the approval rule."""

    def test_no_approval_keeps_requestor_justification(self, builder):
        """Approval off still requires requestor justification."""
        setting = builder.build(PolicySettings(require_approval=False)).approval.to_dict()["setting"]
        assert setting["isApprovalRequired"] is False
        assert setting["isRequestorJustificationRequired"] is True

    def test_no_approval_ignores_approver_id(self, builder):
        rule_set = builder.build(PolicySettings(require_approval=False, approver_group_id="g1"))
        assert rule_set.approval.primary_approvers == ()

    def test_single_approver_one_day_timeout(self, builder):
        rule_set = builder.build(PolicySettings(require_approval=True, approver_group_id="g1"))
        stages = rule_set.approval.to_dict()["setting"]["approvalStages"]
        assert len(stages) == 1
        assert stages[0]["approvalStageTimeOutInDays"] == 1
        assert [a["id"] for a in stages[0]["primaryApprovers"]] == ["g1"]

    def test_stage_timeout_is_not_configurable(self):
        """No builder configuration changes the one-day stage timeout."""
        builder = PolicyBuilder(PolicyBuilderConfig(default_approver_id="default-group", approver_type="User"))
        stages = builder.build(PolicySettings(require_approval=True)).approval.to_dict()["setting"]["approvalStages"]
        assert stages[0]["approvalStageTimeOutInDays"] == APPROVAL_STAGE_TIMEOUT_DAYS == 1
        assert "stage_timeout_days" not in PolicyBuilderConfig.__dataclass_fields__

    def test_falls_back_to_default_approver(self):
        builder = PolicyBuilder(PolicyBuilderConfig(default_approver_id="default-group"))
        rule_set = builder.build(PolicySettings(require_approval=True))
        assert rule_set.approval.primary_approvers == ("default-group",)

    def test_approval_without_any_approver_fails(self, builder):
        with pytest.raises(ValidationError):
            builder.build(PolicySettings(require_approval=True))

    def test_blank_approver_ignored_without_approval(self, builder):
        rule_set = builder.build(PolicySettings(require_approval=False, approver_group_id=""))
        assert rule_set.approval.required is False
        assert rule_set.approval.primary_approvers == ()

    def test_blank_approver_rejected_with_approval(self, builder):
        with pytest.raises(ValidationError):
            builder.build(PolicySettings(require_approval=True, approver_group_id="  "))
