# PIM_FEAT: policy-rules-001
"""
PIM PRIME - Activation Policy Rule Model
========================================

Closed set of rule variants that make up a role's activation policy.

Rule Kinds:
    - Enablement: optional enablement sub-rules switched on for activation
    - Justification: requestor must justify the activation
    - Mfa: requestor must satisfy multi-factor authentication
    - Ticketing: requestor must quote a ticket number
    - Approval: activation waits for an approver's decision
    - AuthenticationContext: conditional-access context (always disabled)
    - Expiration: maximum activation window

Every variant is an immutable dataclass that carries only the fields of
its kind and serializes itself with ``to_dict()``. A ``PolicyRuleSet``
holds at most one rule per kind.

Author: PIM PRIME Development Team
Version: 1.0.0
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, ClassVar, Dict, Iterator, List, Optional, Tuple, Union

from .exceptions import ValidationError
from .durations import parse_iso_duration


class RuleKind(Enum):
    """Activation policy rule kinds, in the order they are applied."""

    ENABLEMENT = "Enablement"
    JUSTIFICATION = "Justification"
    MFA = "Mfa"
    TICKETING = "Ticketing"
    APPROVAL = "Approval"
    AUTHENTICATION_CONTEXT = "AuthenticationContext"
    EXPIRATION = "Expiration"

    @property
    def rule_type(self) -> str:
        """Type discriminator the authority expects in a rule body."""
        return f"RoleManagementPolicy{self.value}Rule"

    def rule_id(self, namespace: str) -> str:
        """Address of this kind's rule inside a policy, e.g. ``Expiration_EndUser_Assignment``."""
        return f"{self.value}_{namespace}"

    @classmethod
    def from_rule_id(cls, rule_id: str) -> Optional["RuleKind"]:
        """Kind named by a rule id's prefix, or None for unknown rules."""
        prefix = rule_id.split("_", 1)[0]
        for kind in cls:
            if kind.value == prefix:
                return kind
        return None


class ExpirationType(Enum):
    """How an activation's end is expressed."""

    AFTER_DATETIME = "AfterDateTime"
    AFTER_DURATION = "AfterDuration"


# =============================================================================
# RULE VARIANTS
# =============================================================================


@dataclass(frozen=True)
class EnablementRule:
    """Optional enablement sub-rules (e.g. ``MultiFactorAuthentication``)."""

    kind: ClassVar[RuleKind] = RuleKind.ENABLEMENT

    enabled_rules: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ruleType": self.kind.rule_type,
            "enabledRules": list(self.enabled_rules),
        }


@dataclass(frozen=True)
class JustificationRule:
    """Whether the requestor must type a justification."""

    kind: ClassVar[RuleKind] = RuleKind.JUSTIFICATION

    required: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ruleType": self.kind.rule_type,
            "isJustificationRequired": self.required,
        }


@dataclass(frozen=True)
class MfaRule:
    """Whether activation demands multi-factor authentication."""

    kind: ClassVar[RuleKind] = RuleKind.MFA

    required: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ruleType": self.kind.rule_type,
            "isMfaRequired": self.required,
        }


@dataclass(frozen=True)
class TicketingRule:
    """Whether the requestor must supply ticket system and number."""

    kind: ClassVar[RuleKind] = RuleKind.TICKETING

    required: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ruleType": self.kind.rule_type,
            "isTicketingRequired": self.required,
        }


@dataclass(frozen=True)
class ApprovalRule:
    """
    Single-stage approval requirement.

    When ``required`` is set, the rule names exactly one primary approver
    and a stage timeout; when it is not, no approver may be present.
    Requestor justification stays on in both cases.
    """

    kind: ClassVar[RuleKind] = RuleKind.APPROVAL

    required: bool
    approver_principal_id: Optional[str] = None
    stage_timeout_days: int = 1
    approver_justification_required: bool = True
    requestor_justification_required: bool = True
    escalation_enabled: bool = False
    approver_type: str = "Group"

    def __post_init__(self):
        if self.required and not self.approver_principal_id:
            raise ValidationError(
                "Approval rule requires an approver principal id",
                field="approver_principal_id",
            )
        if not self.required and self.approver_principal_id is not None:
            raise ValidationError(
                "Approver principal id given for a rule without approval",
                field="approver_principal_id",
            )
        if self.stage_timeout_days < 1:
            raise ValidationError(
                f"Approval stage timeout must be >= 1 day, got {self.stage_timeout_days}",
                field="stage_timeout_days",
            )

    @property
    def primary_approvers(self) -> Tuple[str, ...]:
        if self.approver_principal_id is None:
            return ()
        return (self.approver_principal_id,)

    def to_dict(self) -> Dict[str, Any]:
        stages: List[Dict[str, Any]] = []
        if self.required:
            stages.append({
                "approvalStageTimeOutInDays": self.stage_timeout_days,
                "isApproverJustificationRequired": self.approver_justification_required,
                "escalationTimeInMinutes": 0,
                "isEscalationEnabled": self.escalation_enabled,
                "primaryApprovers": [
                    {"id": approver, "userType": self.approver_type, "isBackup": False}
                    for approver in self.primary_approvers
                ],
                "escalationApprovers": [],
            })

        return {
            "ruleType": self.kind.rule_type,
            "setting": {
                "isApprovalRequired": self.required,
                "isApprovalRequiredForExtension": False,
                "isRequestorJustificationRequired": self.requestor_justification_required,
                "approvalMode": "SingleStage" if self.required else "NoApproval",
                "approvalStages": stages,
            },
        }


@dataclass(frozen=True)
class AuthenticationContextRule:
    """Conditional-access authentication context; reserved, never enabled."""

    kind: ClassVar[RuleKind] = RuleKind.AUTHENTICATION_CONTEXT

    enabled: bool = False

    def __post_init__(self):
        if self.enabled:
            raise ValidationError(
                "Authentication context rules cannot be enabled",
                field="enabled",
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ruleType": self.kind.rule_type,
            "isEnabled": self.enabled,
        }


@dataclass(frozen=True)
class ExpirationRule:
    """
    Maximum activation window.

    ``maximum_duration`` is emitted twice: as ``maximumDuration`` and as
    ``expiration.duration``.
    """

    kind: ClassVar[RuleKind] = RuleKind.EXPIRATION

    maximum_duration: str
    expiration_required: bool = True
    expiration_type: ExpirationType = ExpirationType.AFTER_DATETIME
    end_date_time: Optional[str] = None

    def __post_init__(self):
        # Raises ValidationError for anything that is not an ISO-8601 duration
        parse_iso_duration(self.maximum_duration)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ruleType": self.kind.rule_type,
            "isExpirationRequired": self.expiration_required,
            "maximumDuration": self.maximum_duration,
            "expiration": {
                "type": self.expiration_type.value,
                "endDateTime": self.end_date_time,
                "duration": self.maximum_duration,
            },
        }


PolicyRule = Union[
    EnablementRule,
    JustificationRule,
    MfaRule,
    TicketingRule,
    ApprovalRule,
    AuthenticationContextRule,
    ExpirationRule,
]


# =============================================================================
# RULE SET
# =============================================================================


@dataclass(frozen=True)
class PolicyRuleSet:
    """
    One slot per rule kind; an empty slot means the kind is omitted.

    Slots are declared in application order.
    """

    enablement: Optional[EnablementRule] = None
    justification: Optional[JustificationRule] = None
    mfa: Optional[MfaRule] = None
    ticketing: Optional[TicketingRule] = None
    approval: Optional[ApprovalRule] = None
    authentication_context: Optional[AuthenticationContextRule] = None
    expiration: Optional[ExpirationRule] = None

    def __post_init__(self):
        for slot in fields(self):
            rule = getattr(self, slot.name)
            if rule is not None and _SLOT_KINDS[slot.name] is not rule.kind:
                raise ValidationError(
                    f"{type(rule).__name__} placed in '{slot.name}' slot",
                    field=slot.name,
                )

    def __iter__(self) -> Iterator[PolicyRule]:
        for slot in fields(self):
            rule = getattr(self, slot.name)
            if rule is not None:
                yield rule

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def get(self, kind: RuleKind) -> Optional[PolicyRule]:
        """Rule of the given kind, if present."""
        for rule in self:
            if rule.kind is kind:
                return rule
        return None

    @property
    def kinds(self) -> List[RuleKind]:
        return [rule.kind for rule in self]

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Rule bodies keyed by kind name."""
        return {rule.kind.value: rule.to_dict() for rule in self}


_SLOT_KINDS: Dict[str, RuleKind] = {
    "enablement": RuleKind.ENABLEMENT,
    "justification": RuleKind.JUSTIFICATION,
    "mfa": RuleKind.MFA,
    "ticketing": RuleKind.TICKETING,
    "approval": RuleKind.APPROVAL,
    "authentication_context": RuleKind.AUTHENTICATION_CONTEXT,
    "expiration": RuleKind.EXPIRATION,
}


__all__ = [
    "RuleKind",
    "ExpirationType",
    "EnablementRule",
    "JustificationRule",
    "MfaRule",
    "TicketingRule",
    "ApprovalRule",
    "AuthenticationContextRule",
    "ExpirationRule",
    "PolicyRule",
    "PolicyRuleSet",
]
