# PIM_FEAT: policy-builder-001
"""
PIM PRIME - Activation Policy Builder
=====================================

Turns the desired activation settings for a role into a complete,
internally consistent PolicyRuleSet.

Every one of the seven rule kinds is decided independently:
    1. Enablement: enabled sub-rules copied from settings
    2. Justification / Mfa / Ticketing: mirror the settings flags
    3. Approval: single stage with one approver, or approval switched off
       while requestor justification stays required
    4. AuthenticationContext: always present and disabled
    5. Expiration: required, bounded by ``max_activation_hours``

The builder only constructs the value; sending it to the authority is a
separate step.

Author: PIM PRIME Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .durations import hours_to_iso
from .exceptions import ValidationError
from .policy_rules import (
    ApprovalRule,
    AuthenticationContextRule,
    EnablementRule,
    ExpirationRule,
    JustificationRule,
    MfaRule,
    PolicyRuleSet,
    TicketingRule,
)

logger = logging.getLogger("PIM_PolicyBuilder")

# Single-stage approvals always time out after one day
APPROVAL_STAGE_TIMEOUT_DAYS = 1


@dataclass(frozen=True)
class PolicySettings:
    """Desired activation behaviour for one role."""

    require_justification: bool = True
    require_ticket: bool = False
    require_mfa: bool = False
    require_approval: bool = False
    approver_group_id: Optional[str] = None
    max_activation_hours: int = 8
    enabled_rules: Tuple[str, ...] = ()

    def validate(self) -> List[str]:
        """
        Validate settings.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        hours = self.max_activation_hours
        if not isinstance(hours, int) or isinstance(hours, bool) or hours <= 0:
            errors.append(f"max_activation_hours must be a positive integer, got {hours!r}")

        if (
            self.require_approval
            and self.approver_group_id is not None
            and not str(self.approver_group_id).strip()
        ):
            errors.append("approver_group_id must not be blank")

        return errors


@dataclass
class PolicyBuilderConfig:
    """Configuration for PolicyBuilder."""

    # Used when approval is required but settings name no approver group
    default_approver_id: Optional[str] = None
    approver_type: str = "Group"


class PolicyBuilder:
    """
    Builds activation policy rule sets from PolicySettings.

    Example:
        builder = PolicyBuilder(PolicyBuilderConfig(default_approver_id=group_id))

        rule_set = builder.build(PolicySettings(
            require_mfa=True,
            require_approval=True,
            max_activation_hours=8,
        ))
    """

    def __init__(self, config: Optional[PolicyBuilderConfig] = None):
        self.cfg = config or PolicyBuilderConfig()

    def resolve_approver(self, settings: PolicySettings) -> Optional[str]:
        """Approver identity for the settings; None when approval is off."""
        if not settings.require_approval:
            if settings.approver_group_id:
                logger.debug("Approval not required, ignoring approver group id")
            return None
        return settings.approver_group_id or self.cfg.default_approver_id

    def build(self, settings: PolicySettings) -> PolicyRuleSet:
        """
        Build the complete rule set for one role.

        Args:
            settings: Desired activation behaviour

        Returns:
            PolicyRuleSet with all seven rule kinds present

        Raises:
            ValidationError: invalid settings, or approval required with no
                resolvable approver
        """
        errors = settings.validate()
        if errors:
            raise ValidationError("; ".join(errors), field="settings")

        approver = self.resolve_approver(settings)
        if settings.require_approval and not approver:
            raise ValidationError(
                "Approval is required but no approver group id was given "
                "and no default approver is configured",
                field="approver_group_id",
            )

        if approver:
            approval = ApprovalRule(
                required=True,
                approver_principal_id=approver,
                stage_timeout_days=APPROVAL_STAGE_TIMEOUT_DAYS,
                approver_justification_required=True,
                escalation_enabled=False,
                approver_type=self.cfg.approver_type,
            )
        else:
            approval = ApprovalRule(
                required=False,
                requestor_justification_required=True,
            )

        rule_set = PolicyRuleSet(
            enablement=EnablementRule(enabled_rules=tuple(settings.enabled_rules)),
            justification=JustificationRule(required=settings.require_justification),
            mfa=MfaRule(required=settings.require_mfa),
            ticketing=TicketingRule(required=settings.require_ticket),
            approval=approval,
            authentication_context=AuthenticationContextRule(),
            expiration=ExpirationRule(
                maximum_duration=hours_to_iso(settings.max_activation_hours),
            ),
        )

        logger.debug(
            f"Built policy: approval={approval.required} "
            f"mfa={settings.require_mfa} ticket={settings.require_ticket} "
            f"max={rule_set.expiration.maximum_duration}"
        )
        return rule_set


__all__ = [
    "APPROVAL_STAGE_TIMEOUT_DAYS",
    "PolicySettings",
    "PolicyBuilderConfig",
    "PolicyBuilder",
]
