from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import ReminderKind
from ..rota.scope import Scope
from .model import ReminderRecord


class ReminderLedger(Protocol):
    """Append-only idempotence ledger, unique on ``(shift_id, kind)``."""

    def exists(self, shift_id: int, kind: ReminderKind) -> bool:
        raise NotImplementedError

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
        """Append a record. ``None`` when one already exists for the pair."""

        raise NotImplementedError

    def list_for_date(self, work_date: date) -> Sequence[ReminderRecord]:
        raise NotImplementedError
