# PIM Core - Policy and Approval Logic
"""
Pure domain logic for PIM PRIME.

Modules:
    exceptions: Centralized exception hierarchy
    durations: ISO-8601 duration encoding
    policy_rules: Activation policy rule variants and rule sets
    policy_builder: Builds rule sets from desired settings
    approvals: Request, approval, stage and decision value types
"""

from .exceptions import (
    PIMError,
    ValidationError,
    NotFoundError,
    PolicyNotFoundError,
    AmbiguousMatchError,
    SelectionError,
    WorkflowStateError,
    TransportError,
    SessionClosedError,
    DecisionRejectedError,
    ConfigurationError,
    InvalidConfigError,
    MissingConfigError,
    is_recoverable,
    describe_error,
)

from .durations import (
    hours_to_iso,
    days_to_iso,
    parse_iso_duration,
    describe_duration,
)

from .policy_rules import (
    RuleKind,
    PolicyRule,
    PolicyRuleSet,
    EnablementRule,
    JustificationRule,
    MfaRule,
    TicketingRule,
    ApprovalRule,
    AuthenticationContextRule,
    ExpirationRule,
)

from .policy_builder import (
    PolicySettings,
    PolicyBuilderConfig,
    PolicyBuilder,
)

from .approvals import (
    RoleDefinition,
    GroupRef,
    AssignmentType,
    AssignmentRequest,
    ReviewResult,
    PendingApproval,
    ApprovalStage,
    Decision,
)

__all__ = [
    # Exceptions
    "PIMError",
    "ValidationError",
    "NotFoundError",
    "PolicyNotFoundError",
    "AmbiguousMatchError",
    "SelectionError",
    "WorkflowStateError",
    "TransportError",
    "SessionClosedError",
    "DecisionRejectedError",
    "ConfigurationError",
    "InvalidConfigError",
    "MissingConfigError",
    "is_recoverable",
    "describe_error",
    # Durations
    "hours_to_iso",
    "days_to_iso",
    "parse_iso_duration",
    "describe_duration",
    # Rules
    "RuleKind",
    "PolicyRule",
    "PolicyRuleSet",
    "EnablementRule",
    "JustificationRule",
    "MfaRule",
    "TicketingRule",
    "ApprovalRule",
    "AuthenticationContextRule",
    "ExpirationRule",
    # Builder
    "PolicySettings",
    "PolicyBuilderConfig",
    "PolicyBuilder",
    # Approvals
    "RoleDefinition",
    "GroupRef",
    "AssignmentType",
    "AssignmentRequest",
    "ReviewResult",
    "PendingApproval",
    "ApprovalStage",
    "Decision",
]
