from __future__ import annotations

from datetime import datetime

from src.timeclock.timeclock.attendance.model import AttendanceEntry, BreakInterval, worked_minutes
from src.timeclock.timeclock.core.enums import EntryStatus


def entry(start, end=None):
    return AttendanceEntry(
        entry_id=1,
        worker_id=7,
        start=start,
        end=end,
        status=EntryStatus.OPEN if end is None else EntryStatus.CLOSED,
    )


def test_closed_entry_minus_breaks():
    e = entry(datetime(2026, 3, 2, 9), datetime(2026, 3, 2, 17))
    breaks = [BreakInterval(1, 1, datetime(2026, 3, 2, 12), datetime(2026, 3, 2, 12, 30))]

    assert worked_minutes(e, breaks, now=datetime(2026, 3, 3)) == 450


def test_running_break_is_not_deducted():
    e = entry(datetime(2026, 3, 2, 9))
    breaks = [
        BreakInterval(1, 1, datetime(2026, 3, 2, 10), datetime(2026, 3, 2, 10, 15)),
        BreakInterval(2, 1, datetime(2026, 3, 2, 12), None),
    ]

    assert worked_minutes(e, breaks, now=datetime(2026, 3, 2, 12, 20)) == 185


def test_rounds_half_up():
    start = datetime(2026, 3, 2, 9)
    assert worked_minutes(entry(start, datetime(2026, 3, 2, 9, 0, 30)), [], now=start) == 1
    assert worked_minutes(entry(start, datetime(2026, 3, 2, 9, 0, 29)), [], now=start) == 0


def test_service_uses_clock_for_open_entries(container, clock, ana):
    service = container.attendance_service
    opened = service.clock_in(ana.worker_id)
    clock.advance(minutes=95)

    assert service.compute_worked_minutes(opened) == 95
