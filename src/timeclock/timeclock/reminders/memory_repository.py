from __future__ import annotations

from datetime import date, datetime
from itertools import count
from threading import Lock
from typing import Optional, Sequence

from ..core.enums import ReminderKind
from ..rota.scope import Scope
from .model import ReminderRecord
from .repository import ReminderLedger


class InMemoryReminderLedger(ReminderLedger):
    def __init__(self):
        self._lock = Lock()
        self._ids = count(1)
        self._records: dict[tuple[int, ReminderKind], ReminderRecord] = {}

    def exists(self, shift_id: int, kind: ReminderKind) -> bool:
        with self._lock:
            return (shift_id, kind) in self._records

    def record(
        self,
        *,
        shift_id: int,
        kind: ReminderKind,
        work_date: date,
        scope: Scope,
        scheduled_for: datetime,
        sent_at: datetime,
    ) -> Optional[ReminderRecord]:
        with self._lock:
            if (shift_id, kind) in self._records:
                return None
            record = ReminderRecord(
                record_id=next(self._ids),
                shift_id=shift_id,
                kind=kind,
                work_date=work_date,
                scope=scope,
                scheduled_for=scheduled_for,
                sent_at=sent_at,
            )
            self._records[(shift_id, kind)] = record
            return record

    def list_for_date(self, work_date: date) -> Sequence[ReminderRecord]:
        with self._lock:
            rows = [r for r in self._records.values() if r.work_date == work_date]
        return sorted(rows, key=lambda r: r.record_id)
