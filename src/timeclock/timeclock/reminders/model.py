from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from ..core.enums import ReminderKind
from ..rota.scope import Scope


@dataclass(frozen=True)
class ReminderRecord:
    """Proof that a reminder for ``(shift_id, kind)`` was delivered."""

    record_id: int
    shift_id: int
    kind: ReminderKind
    work_date: date
    scope: Scope
    scheduled_for: datetime
    sent_at: datetime


@dataclass(frozen=True)
class TickReport:
    ran_at: datetime
    enabled: bool = True
    sent: int = 0
    failed: int = 0
    missed: int = 0
    skipped: int = 0
