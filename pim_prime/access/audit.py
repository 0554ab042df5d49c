"""
PIM PRIME - Audit Trail

Structured record of security-relevant actions taken during a session:
policy changes, review decisions, assignment submissions and session
events. Events go to the ``logging`` system and a bounded in-memory
buffer; nothing is persisted.
"""

import hashlib
import json
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Deque, Dict, List, Optional
from uuid import uuid4


logger = logging.getLogger(__name__)


# ============================================================
# Audit Event Types
# ============================================================


class AuditEventType(str, Enum):
    """Categories of auditable events."""

    # Session
    SESSION_CONNECTED = "session.connected"
    SESSION_DISCONNECTED = "session.disconnected"

    # Policy
    POLICY_APPLIED = "policy.applied"
    POLICY_APPLY_FAILED = "policy.apply.failed"

    # Review
    CATALOG_FETCH_FAILED = "catalog.fetch.failed"
    DECISION_SUBMITTED = "decision.submitted"
    DECISION_FAILED = "decision.failed"

    # Assignment
    ASSIGNMENT_SUBMITTED = "assignment.submitted"
    ASSIGNMENT_FAILED = "assignment.failed"


class AuditResult(str, Enum):
    """Result of an audited action."""

    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"


class AuditSeverity(str, Enum):
    """Severity level of audit event."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


EVENT_SEVERITY: Dict[AuditEventType, AuditSeverity] = {
    AuditEventType.SESSION_CONNECTED: AuditSeverity.LOW,
    AuditEventType.SESSION_DISCONNECTED: AuditSeverity.LOW,
    AuditEventType.CATALOG_FETCH_FAILED: AuditSeverity.MEDIUM,
    AuditEventType.DECISION_FAILED: AuditSeverity.MEDIUM,
    AuditEventType.POLICY_APPLY_FAILED: AuditSeverity.MEDIUM,
    AuditEventType.ASSIGNMENT_FAILED: AuditSeverity.MEDIUM,
    AuditEventType.DECISION_SUBMITTED: AuditSeverity.HIGH,
    AuditEventType.POLICY_APPLIED: AuditSeverity.HIGH,
    AuditEventType.ASSIGNMENT_SUBMITTED: AuditSeverity.HIGH,
}


def get_event_severity(event_type: AuditEventType) -> AuditSeverity:
    """Get severity for an event type."""
    return EVENT_SEVERITY.get(event_type, AuditSeverity.MEDIUM)


# ============================================================
# Audit Event Structure
# ============================================================


@dataclass
class AuditEvent:
    """Complete audit event record."""

    event_id: str
    timestamp: datetime
    event_type: AuditEventType
    actor: str
    tenant_id: str
    resource_type: str
    resource_id: Optional[str]
    result: AuditResult
    severity: AuditSeverity
    details: Dict[str, Any] = field(default_factory=dict)
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "event_id": self.event_id,
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "actor": self.actor,
            "tenant_id": self.tenant_id,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "result": self.result.value,
            "severity": self.severity.value,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def compute_hash(self) -> str:
        """Compute SHA256 hash for integrity verification."""
        content = (
            f"{self.event_id}{self.timestamp.isoformat()}{self.actor}"
            f"{self.event_type.value}{self.resource_id or ''}{self.result.value}"
        )
        return hashlib.sha256(content.encode()).hexdigest()


# ============================================================
# Audit Logger
# ============================================================


class AuditLogger:
    """
    Session audit trail.

    Example:
        audit = AuditLogger()
        audit.log(
            AuditEventType.DECISION_SUBMITTED,
            actor=session.account,
            tenant_id=session.tenant_id,
            resource_type="approval",
            resource_id=approval_id,
            details={"review_result": "Approve"},
        )
    """

    def __init__(self, buffer_size: int = 500):
        self._buffer: Deque[AuditEvent] = deque(maxlen=buffer_size)

    def log(
        self,
        event_type: AuditEventType,
        actor: str,
        tenant_id: str,
        resource_type: str,
        resource_id: Optional[str] = None,
        result: AuditResult = AuditResult.SUCCESS,
        details: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None,
    ) -> AuditEvent:
        """Record an audit event."""
        event = AuditEvent(
            event_id=f"evt_{uuid4().hex[:16]}",
            timestamp=datetime.now(timezone.utc),
            event_type=event_type,
            actor=actor,
            tenant_id=tenant_id,
            resource_type=resource_type,
            resource_id=resource_id,
            result=result,
            severity=get_event_severity(event_type),
            details=details or {},
            error_message=error_message,
        )

        level = logging.INFO if result == AuditResult.SUCCESS else logging.WARNING
        logger.log(
            level,
            "AUDIT %s",
            event.to_json(),
            extra={"event_hash": event.compute_hash()},
        )

        self._buffer.append(event)
        return event

    def query(
        self,
        event_types: Optional[List[AuditEventType]] = None,
        resource_id: Optional[str] = None,
        result: Optional[AuditResult] = None,
    ) -> List[AuditEvent]:
        """Query buffered events, oldest first."""
        events = list(self._buffer)
        if event_types:
            events = [e for e in events if e.event_type in event_types]
        if resource_id:
            events = [e for e in events if e.resource_id == resource_id]
        if result:
            events = [e for e in events if e.result == result]
        return events

    def __len__(self) -> int:
        return len(self._buffer)


__all__ = [
    "AuditEventType",
    "AuditResult",
    "AuditSeverity",
    "AuditEvent",
    "AuditLogger",
    "get_event_severity",
]
