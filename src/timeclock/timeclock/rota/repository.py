from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional, Protocol, Sequence

from .model import RotaShift, RotaWeek
from .scope import Scope


class RotaRepository(Protocol):
    def get_week(self, week_start: date, scope: Scope) -> Optional[RotaWeek]:
        raise NotImplementedError

    def save_week(self, week: RotaWeek) -> RotaWeek:
        """Insert or replace the publication row for ``(week_start, scope)``."""

        raise NotImplementedError

    def create_shift(
        self,
        *,
        week_start: date,
        scope: Scope,
        work_date: date,
        start_time: time,
        end_time: time,
        role: str,
        notes: str,
        assigned_worker_id: Optional[int],
        created_by: Optional[int],
        updated_at: datetime,
    ) -> RotaShift:
        raise NotImplementedError

    def update_shift(self, shift: RotaShift) -> Optional[RotaShift]:
        """Replace every editable column. ``None`` when the shift is gone."""

        raise NotImplementedError

    def get_shift(self, shift_id: int) -> Optional[RotaShift]:
        raise NotImplementedError

    def delete_shift(self, shift_id: int) -> bool:
        raise NotImplementedError

    def delete_week_shifts(self, week_start: date, scope: Scope) -> int:
        raise NotImplementedError

    def list_shifts(
        self, week_start: date, scope: Scope, *, assigned_worker_id: Optional[int] = None
    ) -> Sequence[RotaShift]:
        """Ordered by date, then start time."""

        raise NotImplementedError

    def list_assigned_shifts_on(self, work_date: date, scope: Optional[Scope] = None) -> Sequence[RotaShift]:
        """Shifts with an assigned worker on ``work_date``; every scope when ``scope`` is None."""

        raise NotImplementedError
