"""
PIM PRIME - Centralized Exception Hierarchy
===========================================

Provides structured exception types for policy convergence and the
approval workflow.

Exception Categories:
    - ValidationError: Malformed policy settings or requests
    - NotFoundError: Role, group or policy absent at the directory/authority
    - SelectionError: Out-of-range or non-numeric reviewer input
    - TransportError: Remote call failed (network, auth, 4xx/5xx)
    - DecisionRejectedError: Authority refused a review decision
    - ConfigurationError: Descriptor file and settings problems

Author: PIM PRIME Development Team
Version: 1.0.0
"""

from typing import Any, Dict, Optional


class PIMError(Exception):
    """
    Base exception for all PIM PRIME errors.

    Attributes:
        message: Human-readable error description
        code: Optional error code for programmatic handling
        details: Optional dict with additional context
        recoverable: Whether the interactive session can continue
    """

    recoverable: bool = True

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


# =============================================================================
# POLICY ERRORS
# =============================================================================


class ValidationError(PIMError):
    """Policy settings or request values are invalid."""

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field


# =============================================================================
# DIRECTORY & LOOKUP ERRORS
# =============================================================================


class NotFoundError(PIMError):
    """Role, group or policy does not exist."""

    def __init__(
        self,
        message: str,
        resource_type: str = "unknown",
        name: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.resource_type = resource_type
        self.name = name


class PolicyNotFoundError(NotFoundError):
    """Role has no activation policy object yet."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("resource_type", "policy")
        super().__init__(message, **kwargs)


class AmbiguousMatchError(PIMError):
    """Directory returned more than one object for a display name."""

    def __init__(
        self,
        message: str,
        resource_type: str = "unknown",
        name: Optional[str] = None,
        match_count: int = 0,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.resource_type = resource_type
        self.name = name
        self.match_count = match_count


# =============================================================================
# WORKFLOW ERRORS
# =============================================================================


class SelectionError(PIMError):
    """Reviewer input does not name a listed item or a known action."""

    def __init__(self, message: str, raw_input: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_input = raw_input


class WorkflowStateError(PIMError):
    """Operation is not valid in the workflow's current state."""

    recoverable: bool = False


# =============================================================================
# TRANSPORT & AUTHORITY ERRORS
# =============================================================================


class TransportError(PIMError):
    """Remote call to the authority or directory failed."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.status_code = status_code


class SessionClosedError(TransportError):
    """The credential session was disconnected."""

    pass


class DecisionRejectedError(PIMError):
    """Authority refused a review decision (e.g. stage already resolved)."""

    def __init__(
        self,
        message: str,
        approval_id: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.approval_id = approval_id
        self.status_code = status_code


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigurationError(PIMError):
    """Base exception for configuration errors."""

    recoverable: bool = False

    def __init__(self, message: str, key: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.key = key


class InvalidConfigError(ConfigurationError):
    """Invalid configuration value."""

    pass


class MissingConfigError(ConfigurationError):
    """Required configuration is missing."""

    pass


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def is_recoverable(error: Exception) -> bool:
    """
    Determine whether the interactive session can carry on after an error.

    PIM PRIME errors declare this themselves; anything else is treated as
    fatal to the current operation but not to the process.
    """
    if hasattr(error, "recoverable"):
        return error.recoverable

    return not isinstance(error, (SystemExit, KeyboardInterrupt, MemoryError))


def describe_error(operation: str, error: Exception) -> str:
    """Human-readable message naming the operation and the underlying cause."""
    return f"{operation} failed: {error}"


__all__ = [
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
]
