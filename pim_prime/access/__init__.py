"""
PIM PRIME Access Module

Audit trail for privileged access actions.
"""

from pim_prime.access.audit import (
    AuditEventType,
    AuditResult,
    AuditSeverity,
    AuditEvent,
    AuditLogger,
)

__all__ = [
    "AuditEventType",
    "AuditResult",
    "AuditSeverity",
    "AuditEvent",
    "AuditLogger",
]
