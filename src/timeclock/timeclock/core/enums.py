from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Caller roles. Admins and managers are privileged."""

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"

    @property
    def is_privileged(self) -> bool:
        if self is Role.ADMIN or self is Role.MANAGER:
            return True
        if self is Role.EMPLOYEE:
            return False
        raise ValueError(f"Unhandled role: {self!r}")


class EntryStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class WorkerState(str, Enum):
    """Per-worker attendance state."""

    NO_OPEN_ENTRY = "no_open_entry"
    WORKING = "working"
    ON_BREAK = "on_break"


class GeoEventKind(str, Enum):
    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"
    BREAK_START = "break_start"
    BREAK_END = "break_end"


class ReminderKind(str, Enum):
    CHECK_IN = "checkin"
    CHECK_OUT = "checkout"


class CorrectionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
