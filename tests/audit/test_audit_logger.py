from __future__ import annotations

from datetime import datetime

from src.timeclock.timeclock.audit.memory_repository import InMemoryAuditSink
from src.timeclock.timeclock.audit.model import AuditAction
from src.timeclock.timeclock.audit.service import AuditLogger


class BrokenSink:
    def write(self, record):
        raise RuntimeError("disk full")

    def list_recent(self, limit):
        return []


def test_record_is_stamped_by_clock(clock):
    sink = InMemoryAuditSink()
    AuditLogger(sink, clock).record(
        actor_id=7,
        action=AuditAction.CLOCK_IN,
        entity_type="time_entry",
        entity_id=12,
        metadata={"lat": 40.0},
    )

    (record,) = sink.records
    assert record.entity_id == "12"
    assert record.timestamp == datetime(2026, 3, 2, 8, 0)
    assert record.metadata == {"lat": 40.0}


def test_failing_sink_does_not_break_caller(clock, caplog):
    AuditLogger(BrokenSink(), clock).record(actor_id=None, action=AuditAction.REMINDER_SENT, entity_type="rota_shift")

    assert "Failed to write audit record" in caplog.text


def test_list_recent_is_newest_first(clock):
    sink = InMemoryAuditSink()
    logger = AuditLogger(sink, clock)
    for action in (AuditAction.CLOCK_IN, AuditAction.BREAK_START, AuditAction.CLOCK_OUT):
        logger.record(actor_id=7, action=action, entity_type="time_entry")

    assert [r.action for r in sink.list_recent(2)] == [AuditAction.CLOCK_OUT, AuditAction.BREAK_START]
