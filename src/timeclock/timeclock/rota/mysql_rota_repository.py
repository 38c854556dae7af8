from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_date, normalize_mysql_time
from .model import RotaShift, RotaWeek
from .repository import RotaRepository
from .scope import Scope

_SHIFT_COLUMNS = (
    "shift_id, week_start, location, department, work_date, start_time, end_time, "
    "role, notes, assigned_worker_id, created_by, updated_at"
)


def _to_shift(r: Dict[str, Any]) -> RotaShift:
    return RotaShift(
        shift_id=int(r["shift_id"]),
        week_start=normalize_mysql_date(r["week_start"]),
        scope=Scope(r["location"], r["department"]),
        work_date=normalize_mysql_date(r["work_date"]),
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        role=r.get("role") or "",
        notes=r.get("notes") or "",
        assigned_worker_id=int(r["assigned_worker_id"]) if r.get("assigned_worker_id") is not None else None,
        created_by=int(r["created_by"]) if r.get("created_by") is not None else None,
        updated_at=r.get("updated_at"),
    )


class MySQLRotaRepository(RotaRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_week(self, week_start: date, scope: Scope) -> Optional[RotaWeek]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT week_start, location, department, is_published, published_at, published_by
                FROM rota_weeks
                WHERE week_start=%s AND location=%s AND department=%s
                """,
                (week_start, scope.location, scope.department),
            )
            r = fetchone(cur)
            if not r:
                return None
            return RotaWeek(
                week_start=normalize_mysql_date(r["week_start"]),
                scope=Scope(r["location"], r["department"]),
                published=bool(r["is_published"]),
                published_at=r.get("published_at"),
                published_by=int(r["published_by"]) if r.get("published_by") is not None else None,
            )

    def save_week(self, week: RotaWeek) -> RotaWeek:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO rota_weeks(week_start, location, department, is_published, published_at, published_by)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    is_published=VALUES(is_published),
                    published_at=VALUES(published_at),
                    published_by=VALUES(published_by)
                """,
                (
                    week.week_start,
                    week.scope.location,
                    week.scope.department,
                    1 if week.published else 0,
                    week.published_at,
                    week.published_by,
                ),
            )
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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO rota_shifts(
                    week_start, location, department, work_date, start_time, end_time,
                    role, notes, assigned_worker_id, created_by, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    week_start,
                    scope.location,
                    scope.department,
                    work_date,
                    start_time,
                    end_time,
                    role,
                    notes,
                    assigned_worker_id,
                    created_by,
                    updated_at,
                ),
            )
            shift_id = int(cur.lastrowid)
        return RotaShift(
            shift_id=shift_id,
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

    def update_shift(self, shift: RotaShift) -> Optional[RotaShift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE rota_shifts
                SET week_start=%s, location=%s, department=%s, work_date=%s, start_time=%s, end_time=%s,
                    role=%s, notes=%s, assigned_worker_id=%s, updated_at=%s
                WHERE shift_id=%s
                """,
                (
                    shift.week_start,
                    shift.scope.location,
                    shift.scope.department,
                    shift.work_date,
                    shift.start_time,
                    shift.end_time,
                    shift.role,
                    shift.notes,
                    shift.assigned_worker_id,
                    shift.updated_at,
                    shift.shift_id,
                ),
            )
            cur.execute(f"SELECT {_SHIFT_COLUMNS} FROM rota_shifts WHERE shift_id=%s", (shift.shift_id,))
            r = fetchone(cur)
            return _to_shift(r) if r else None

    def get_shift(self, shift_id: int) -> Optional[RotaShift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SHIFT_COLUMNS} FROM rota_shifts WHERE shift_id=%s", (shift_id,))
            r = fetchone(cur)
            return _to_shift(r) if r else None

    def delete_shift(self, shift_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM rota_shifts WHERE shift_id=%s", (shift_id,))
            return cur.rowcount > 0

    def delete_week_shifts(self, week_start: date, scope: Scope) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM rota_shifts WHERE week_start=%s AND location=%s AND department=%s",
                (week_start, scope.location, scope.department),
            )
            return int(cur.rowcount)

    def list_shifts(
        self, week_start: date, scope: Scope, *, assigned_worker_id: Optional[int] = None
    ) -> Sequence[RotaShift]:
        sql = f"""
            SELECT {_SHIFT_COLUMNS}
            FROM rota_shifts
            WHERE week_start=%s AND location=%s AND department=%s
        """
        params: list[Any] = [week_start, scope.location, scope.department]
        if assigned_worker_id is not None:
            sql += " AND assigned_worker_id=%s"
            params.append(assigned_worker_id)
        sql += " ORDER BY work_date, start_time, shift_id"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_shift(r) for r in fetchall(cur)]

    def list_assigned_shifts_on(self, work_date: date, scope: Optional[Scope] = None) -> Sequence[RotaShift]:
        sql = f"""
            SELECT {_SHIFT_COLUMNS}
            FROM rota_shifts
            WHERE work_date=%s AND assigned_worker_id IS NOT NULL
        """
        params: list[Any] = [work_date]
        if scope is not None:
            sql += " AND location=%s AND department=%s"
            params.extend([scope.location, scope.department])
        sql += " ORDER BY start_time, shift_id"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_shift(r) for r in fetchall(cur)]
