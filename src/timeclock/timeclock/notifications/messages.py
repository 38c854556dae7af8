from __future__ import annotations

from datetime import date, time
from typing import Iterable

from ..core.enums import ReminderKind


def _hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def reminder_subject(kind: ReminderKind) -> str:
    if kind is ReminderKind.CHECK_IN:
        return "Clock in reminder"
    if kind is ReminderKind.CHECK_OUT:
        return "Clock out reminder"
    raise ValueError(f"Unhandled reminder kind: {kind!r}")


def _action(kind: ReminderKind) -> str:
    return "clock out" if kind is ReminderKind.CHECK_OUT else "clock in"


def shift_reminder_body(kind: ReminderKind, work_date: date, start: time, end: time) -> str:
    return f"Reminder to {_action(kind)} for your shift on {work_date.isoformat()} {_hhmm(start)}-{_hhmm(end)}."


def day_reminder_body(kind: ReminderKind, work_date: date, shifts: Iterable[tuple[date, time, time]]) -> str:
    lines = "\n".join(f"{d.isoformat()} {_hhmm(s)}-{_hhmm(e)}" for d, s, e in shifts)
    return f"Reminder to {_action(kind)} for your shift on {work_date.isoformat()}.\n\n{lines}"


PUBLISH_SUBJECT = "Rota published"


def publish_body(week_start: date, shifts: Iterable[tuple[date, time, time]]) -> str:
    lines = "\n".join(f"{d.isoformat()} {_hhmm(s)}-{_hhmm(e)}" for d, s, e in shifts)
    return f"Your rota for week starting {week_start.isoformat()} has been published.\n\n{lines or 'No assigned shifts.'}"
