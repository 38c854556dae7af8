from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from .scope import Scope


@dataclass(frozen=True)
class RotaWeek:
    """Draft/Published container for one scope's shifts in one week."""

    week_start: date
    scope: Scope
    published: bool = False
    published_at: Optional[datetime] = None
    published_by: Optional[int] = None

    @classmethod
    def draft(cls, week_start: date, scope: Scope) -> "RotaWeek":
        return cls(week_start=week_start, scope=scope)


@dataclass(frozen=True)
class RotaShift:
    shift_id: int
    week_start: date
    scope: Scope
    work_date: date
    start_time: time
    end_time: time
    role: str = ""
    notes: str = ""
    assigned_worker_id: Optional[int] = None
    created_by: Optional[int] = None
    updated_at: Optional[datetime] = None

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.work_date, self.start_time)

    @property
    def ends_at(self) -> datetime:
        return datetime.combine(self.work_date, self.end_time)


@dataclass(frozen=True)
class ShiftDraft:
    """Editable fields of a shift. ``week_start`` is always derived from ``work_date``."""

    work_date: date
    start_time: time
    end_time: time
    role: str = ""
    notes: str = ""
    assigned_worker_id: Optional[int] = None
    scope: Optional[Scope] = None
