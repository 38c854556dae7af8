from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time
from itertools import count
from threading import Lock
from typing import Optional, Sequence

from .model import RotaShift, RotaWeek
from .repository import RotaRepository
from .scope import Scope


def _order(shift: RotaShift):
    return (shift.work_date, shift.start_time, shift.shift_id)


class InMemoryRotaRepository(RotaRepository):
    def __init__(self):
        self._lock = Lock()
        self._ids = count(1)
        self._weeks: dict[tuple[date, Scope], RotaWeek] = {}
        self._shifts: dict[int, RotaShift] = {}

    def get_week(self, week_start: date, scope: Scope) -> Optional[RotaWeek]:
        with self._lock:
            return self._weeks.get((week_start, scope))

    def save_week(self, week: RotaWeek) -> RotaWeek:
        with self._lock:
            self._weeks[(week.week_start, week.scope)] = week
            return week

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
        with self._lock:
            shift = RotaShift(
                shift_id=next(self._ids),
                week_start=week_start,
                scope=scope,
                work_date=work_date,
                start_time=start_time,
                end_time=end_time,
                role=role,
                notes=notes,
                assigned_worker_id=assigned_worker_id,
                created_by=created_by,
                updated_at=updated_at,
            )
            self._shifts[shift.shift_id] = shift
            return shift

    def update_shift(self, shift: RotaShift) -> Optional[RotaShift]:
        with self._lock:
            current = self._shifts.get(shift.shift_id)
            if current is None:
                return None
            updated = replace(shift, created_by=current.created_by)
            self._shifts[shift.shift_id] = updated
            return updated

    def get_shift(self, shift_id: int) -> Optional[RotaShift]:
        with self._lock:
            return self._shifts.get(shift_id)

    def delete_shift(self, shift_id: int) -> bool:
        with self._lock:
            return self._shifts.pop(shift_id, None) is not None

    def delete_week_shifts(self, week_start: date, scope: Scope) -> int:
        with self._lock:
            doomed = [s.shift_id for s in self._shifts.values() if s.week_start == week_start and s.scope == scope]
            for shift_id in doomed:
                del self._shifts[shift_id]
            return len(doomed)

    def list_shifts(
        self, week_start: date, scope: Scope, *, assigned_worker_id: Optional[int] = None
    ) -> Sequence[RotaShift]:
        with self._lock:
            rows = [
                s
                for s in self._shifts.values()
                if s.week_start == week_start
                and s.scope == scope
                and (assigned_worker_id is None or s.assigned_worker_id == assigned_worker_id)
            ]
        return sorted(rows, key=_order)

    def list_assigned_shifts_on(self, work_date: date, scope: Optional[Scope] = None) -> Sequence[RotaShift]:
        with self._lock:
            rows = [
                s
                for s in self._shifts.values()
                if s.work_date == work_date
                and s.assigned_worker_id is not None
                and (scope is None or s.scope == scope)
            ]
        return sorted(rows, key=_order)
