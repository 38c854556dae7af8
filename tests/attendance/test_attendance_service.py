from __future__ import annotations

import threading
from datetime import datetime

import pytest

from src.timeclock.timeclock.attendance.model import GeoPayload
from src.timeclock.timeclock.audit.model import AuditAction
from src.timeclock.timeclock.core.enums import GeoEventKind, WorkerState
from src.timeclock.timeclock.core.exceptions import (
    AlreadyOnBreakError,
    AlreadyOpenError,
    ComplianceIncompleteError,
    EntryClosedError,
    ForbiddenError,
    NotFoundError,
    NotOpenError,
    OpenBreakPresentError,
    ValidationError,
)


def at(hour, minute=0):
    return datetime(2026, 3, 2, hour, minute)


def test_clock_in_with_geo_records_one_event(container, ana):
    service = container.attendance_service
    geo = GeoPayload(latitude=40.0, longitude=-3.7, accuracy=5)

    entry = service.clock_in(ana.worker_id, timestamp=at(9), geo=geo)

    assert entry.is_open
    assert entry.start == at(9)
    events = service.list_geo_events(ana)
    assert len(events) == 1
    assert events[0].kind is GeoEventKind.CLOCK_IN
    assert (events[0].latitude, events[0].longitude, events[0].accuracy) == (40.0, -3.7, 5)
    assert events[0].entry_id == entry.entry_id


def test_clock_in_without_geo_records_no_event(container, ana):
    service = container.attendance_service
    service.clock_in(ana.worker_id, timestamp=at(9))

    assert service.list_geo_events(ana) == []


def test_second_clock_in_is_rejected(container, ana):
    service = container.attendance_service
    service.clock_in(ana.worker_id, timestamp=at(9))

    with pytest.raises(AlreadyOpenError):
        service.clock_in(ana.worker_id, timestamp=at(9, 5))

    assert len(service.list_entries(ana)) == 1


def test_concurrent_clock_ins_open_exactly_one_entry(container, ana):
    service = container.attendance_service
    barrier = threading.Barrier(8)
    results = []
    lock = threading.Lock()

    def attempt():
        barrier.wait()
        try:
            service.clock_in(ana.worker_id)
            outcome = "ok"
        except AlreadyOpenError:
            outcome = "rejected"
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=attempt) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count("ok") == 1
    assert results.count("rejected") == 7
    assert len(service.list_entries(ana)) == 1


def test_clock_in_requires_compliance(container, settings, ana):
    settings.update({"privacy": {"data_retention_years": 3}})

    with pytest.raises(ComplianceIncompleteError) as ex:
        container.attendance_service.clock_in(ana.worker_id)

    assert [str(m) for m in ex.value.missing] == ["Data retention must be >= 4"]
    assert container.attendance_service.get_state(ana.worker_id).state is WorkerState.NO_OPEN_ENTRY


def test_breaks_and_clock_out_are_not_gated_by_compliance(container, settings, ana):
    service = container.attendance_service
    entry = service.clock_in(ana.worker_id, timestamp=at(9))
    settings.update({"company": {"controller_legal_name": ""}})

    brk = service.start_break(entry.entry_id, principal=ana, timestamp=at(12))
    service.end_break(entry.entry_id, brk.break_id, principal=ana, timestamp=at(12, 30))
    closed = service.clock_out(entry.entry_id, principal=ana, timestamp=at(17))

    assert not closed.is_open


def test_state_follows_lifecycle(container, ana):
    service = container.attendance_service
    assert service.get_state(ana.worker_id).state is WorkerState.NO_OPEN_ENTRY

    entry = service.clock_in(ana.worker_id, timestamp=at(9))
    assert service.get_state(ana.worker_id).state is WorkerState.WORKING

    brk = service.start_break(entry.entry_id, principal=ana, timestamp=at(11))
    snapshot = service.get_state(ana.worker_id)
    assert snapshot.state is WorkerState.ON_BREAK
    assert snapshot.open_break.break_id == brk.break_id

    service.end_break(entry.entry_id, brk.break_id, principal=ana, timestamp=at(11, 15))
    assert service.get_state(ana.worker_id).state is WorkerState.WORKING

    service.clock_out(entry.entry_id, principal=ana, timestamp=at(17))
    assert service.get_state(ana.worker_id).state is WorkerState.NO_OPEN_ENTRY


def test_only_one_running_break_per_entry(container, ana):
    service = container.attendance_service
    entry = service.clock_in(ana.worker_id, timestamp=at(9))
    service.start_break(entry.entry_id, principal=ana, timestamp=at(10))

    with pytest.raises(AlreadyOnBreakError):
        service.start_break(entry.entry_id, principal=ana, timestamp=at(10, 5))


def test_clock_out_with_running_break_is_rejected(container, ana):
    service = container.attendance_service
    entry = service.clock_in(ana.worker_id, timestamp=at(9))
    brk = service.start_break(entry.entry_id, principal=ana, timestamp=at(12))

    with pytest.raises(OpenBreakPresentError):
        service.clock_out(entry.entry_id, principal=ana, timestamp=at(13))

    assert service.get_entry(ana, entry.entry_id).entry.is_open
    service.end_break(entry.entry_id, brk.break_id, principal=ana, timestamp=at(12, 30))
    assert not service.clock_out(entry.entry_id, principal=ana, timestamp=at(13)).is_open


def test_closed_entry_rejects_changes(container, ana):
    service = container.attendance_service
    entry = service.clock_in(ana.worker_id, timestamp=at(9))
    service.clock_out(entry.entry_id, principal=ana, timestamp=at(17))

    with pytest.raises(EntryClosedError):
        service.clock_out(entry.entry_id, principal=ana, timestamp=at(18))
    with pytest.raises(EntryClosedError):
        service.start_break(entry.entry_id, principal=ana, timestamp=at(18))


def test_ending_a_break_twice_is_rejected(container, ana):
    service = container.attendance_service
    entry = service.clock_in(ana.worker_id, timestamp=at(9))
    brk = service.start_break(entry.entry_id, principal=ana, timestamp=at(10))
    service.end_break(entry.entry_id, brk.break_id, principal=ana, timestamp=at(10, 10))

    with pytest.raises(NotOpenError):
        service.end_break(entry.entry_id, brk.break_id, principal=ana, timestamp=at(10, 20))


def test_unknown_entry_and_break(container, ana):
    service = container.attendance_service
    with pytest.raises(NotFoundError):
        service.clock_out(999, principal=ana)

    entry = service.clock_in(ana.worker_id, timestamp=at(9))
    with pytest.raises(NotFoundError):
        service.end_break(entry.entry_id, 999, principal=ana)


def test_clock_out_before_clock_in_is_invalid(container, ana):
    service = container.attendance_service
    entry = service.clock_in(ana.worker_id, timestamp=at(9))

    with pytest.raises(ValidationError):
        service.clock_out(entry.entry_id, principal=ana, timestamp=at(8))


def test_clock_out_before_a_break_ended_is_invalid(container, ana):
    service = container.attendance_service
    entry = service.clock_in(ana.worker_id, timestamp=at(9))
    brk = service.start_break(entry.entry_id, principal=ana, timestamp=at(10))
    service.end_break(entry.entry_id, brk.break_id, principal=ana, timestamp=at(12))

    with pytest.raises(ValidationError):
        service.clock_out(entry.entry_id, principal=ana, timestamp=at(10, 30))

    assert service.get_entry(ana, entry.entry_id).entry.is_open
    closed = service.clock_out(entry.entry_id, principal=ana, timestamp=at(12))
    assert service.compute_worked_minutes(closed) == 60


def test_employee_cannot_touch_another_workers_entry(container, ana, luis, boss):
    service = container.attendance_service
    entry = service.clock_in(ana.worker_id, timestamp=at(9))

    with pytest.raises(ForbiddenError):
        service.start_break(entry.entry_id, principal=luis)
    with pytest.raises(ForbiddenError):
        service.clock_out(entry.entry_id, principal=luis)
    with pytest.raises(ForbiddenError):
        service.get_entry(luis, entry.entry_id)

    # managers may act for anyone
    assert not service.clock_out(entry.entry_id, principal=boss, timestamp=at(17)).is_open


def test_listing_is_limited_to_own_entries_for_employees(container, ana, luis, boss):
    service = container.attendance_service
    service.clock_in(ana.worker_id, timestamp=at(9))
    service.clock_in(luis.worker_id, timestamp=at(9, 30))

    assert [e.entry.worker_id for e in service.list_entries(ana)] == [7]
    assert [e.entry.worker_id for e in service.list_entries(ana, worker_id=8)] == [7]
    assert {e.entry.worker_id for e in service.list_entries(boss)} == {7, 8}
    assert [e.entry.worker_id for e in service.list_entries(boss, worker_id=8)] == [8]


def test_every_transition_writes_an_audit_record(container, ana):
    service = container.attendance_service
    entry = service.clock_in(ana.worker_id, timestamp=at(9))
    brk = service.start_break(entry.entry_id, principal=ana, timestamp=at(12))
    service.end_break(entry.entry_id, brk.break_id, principal=ana, timestamp=at(12, 30))
    service.clock_out(entry.entry_id, principal=ana, timestamp=at(17))

    actions = [r.action for r in container.audit_sink.records]
    assert actions == [
        AuditAction.CLOCK_IN,
        AuditAction.BREAK_START,
        AuditAction.BREAK_END,
        AuditAction.CLOCK_OUT,
    ]
