from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from mysql.connector import errors as mysql_errors

from ..core.enums import ReminderKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_date
from ..rota.scope import Scope
from .model import ReminderRecord
from .repository import ReminderLedger


class MySQLReminderLedger(ReminderLedger):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def exists(self, shift_id: int, kind: ReminderKind) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT reminder_id FROM rota_reminders WHERE shift_id=%s AND kind=%s",
                (shift_id, kind.value),
            )
            return fetchone(cur) is not None

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
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO rota_reminders(shift_id, kind, work_date, location, department, scheduled_for, sent_at)
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (shift_id, kind.value, work_date, scope.location, scope.department, scheduled_for, sent_at),
                )
                record_id = int(cur.lastrowid)
        except mysql_errors.IntegrityError:
            return None
        return ReminderRecord(
            record_id=record_id,
            shift_id=shift_id,
            kind=kind,
            work_date=work_date,
            scope=scope,
            scheduled_for=scheduled_for,
            sent_at=sent_at,
        )

    def list_for_date(self, work_date: date) -> Sequence[ReminderRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT reminder_id, shift_id, kind, work_date, location, department, scheduled_for, sent_at
                FROM rota_reminders
                WHERE work_date=%s
                ORDER BY reminder_id
                """,
                (work_date,),
            )
            return [
                ReminderRecord(
                    record_id=int(r["reminder_id"]),
                    shift_id=int(r["shift_id"]),
                    kind=ReminderKind(r["kind"]),
                    work_date=normalize_mysql_date(r["work_date"]),
                    scope=Scope(r["location"], r["department"]),
                    scheduled_for=r["scheduled_for"],
                    sent_at=r["sent_at"],
                )
                for r in fetchall(cur)
            ]
