"""
Tests for the Audit Trail
=========================
"""

import json

import pytest

from pim_prime.access.audit import (
    AuditEventType,
    AuditLogger,
    AuditResult,
    AuditSeverity,
    get_event_severity,
)


@pytest.fixture
def logger_with_events():
    audit = AuditLogger(buffer_size=10)
    audit.log(AuditEventType.DECISION_SUBMITTED, "r@x", "t1", "approval", resource_id="a1")
    audit.log(
        AuditEventType.DECISION_FAILED,
        "r@x",
        "t1",
        "approval",
        resource_id="a2",
        result=AuditResult.FAILURE,
        error_message="HTTP 409",
    )
    return audit


class TestAuditLogger:
    """Tests for recording and querying events."""

    def test_query_by_type(self, logger_with_events):
        events = logger_with_events.query(event_types=[AuditEventType.DECISION_FAILED])
        assert [e.resource_id for e in events] == ["a2"]

    def test_query_by_result(self, logger_with_events):
        assert len(logger_with_events.query(result=AuditResult.SUCCESS)) == 1

    def test_buffer_is_bounded(self):
        audit = AuditLogger(buffer_size=3)
        for i in range(5):
            audit.log(AuditEventType.ASSIGNMENT_SUBMITTED, "r@x", "t1", "assignment", resource_id=str(i))
        assert len(audit) == 3
        assert [e.resource_id for e in audit.query()] == ["2", "3", "4"]

    def test_failures_logged_as_warning(self, caplog):
        audit = AuditLogger()
        with caplog.at_level("INFO", logger="pim_prime.access.audit"):
            audit.log(
                AuditEventType.CATALOG_FETCH_FAILED,
                "r@x",
                "t1",
                "approval",
                result=AuditResult.ERROR,
            )
        assert caplog.records[-1].levelname == "WARNING"


class TestAuditEvent:
    """Tests for event serialization."""

    def test_json_round_trip_fields(self, logger_with_events):
        event = logger_with_events.query()[0]
        data = json.loads(event.to_json())
        assert data["event_type"] == "decision.submitted"
        assert data["severity"] == "high"

    def test_hash_is_stable(self, logger_with_events):
        event = logger_with_events.query()[0]
        assert event.compute_hash() == event.compute_hash()
        assert len(event.compute_hash()) == 64

    def test_severity_mapping(self):
        assert get_event_severity(AuditEventType.SESSION_DISCONNECTED) is AuditSeverity.LOW
        assert get_event_severity(AuditEventType.POLICY_APPLIED) is AuditSeverity.HIGH
