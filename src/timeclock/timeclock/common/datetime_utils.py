from __future__ import annotations

from datetime import date, datetime, time, timedelta


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp. A bare date means midnight."""
    value = value.strip()
    if len(value) == 10:
        return datetime.combine(parse_iso_date(value), time(0, 0))
    return datetime.fromisoformat(value)


def parse_hhmm(value: str) -> time:
    """Parse HH:MM (seconds tolerated) into a time."""
    parts = value.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time string: {value!r}")
    seconds = int(parts[2]) if len(parts) >= 3 and parts[2] else 0
    return time(hour=int(parts[0]), minute=int(parts[1]), second=seconds)


def week_start_for(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60.0
