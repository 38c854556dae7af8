from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from mysql.connector import errors as mysql_errors

from ..core.enums import CorrectionStatus, EntryStatus, GeoEventKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceEntry, BreakInterval, Correction, GeoEvent, GeoPayload
from .repository import EntryRepository

_ENTRY_COLUMNS = "entry_id, worker_id, start_at, end_at, status"
_BREAK_COLUMNS = "break_id, entry_id, start_at, end_at"
_EVENT_COLUMNS = "event_id, entry_id, worker_id, kind, event_at, latitude, longitude, accuracy, device_id"
_CORRECTION_COLUMNS = (
    "correction_id, entry_id, worker_id, reason, status, created_at, resolved_at, resolved_by, resolution_note"
)


def _to_entry(r: Dict[str, Any]) -> AttendanceEntry:
    return AttendanceEntry(
        entry_id=int(r["entry_id"]),
        worker_id=int(r["worker_id"]),
        start=r["start_at"],
        end=r.get("end_at"),
        status=EntryStatus(r["status"]),
    )


def _to_break(r: Dict[str, Any]) -> BreakInterval:
    return BreakInterval(
        break_id=int(r["break_id"]),
        entry_id=int(r["entry_id"]),
        start=r["start_at"],
        end=r.get("end_at"),
    )


def _to_event(r: Dict[str, Any]) -> GeoEvent:
    return GeoEvent(
        event_id=int(r["event_id"]),
        entry_id=int(r["entry_id"]),
        worker_id=int(r["worker_id"]),
        kind=GeoEventKind(r["kind"]),
        timestamp=r["event_at"],
        latitude=r.get("latitude"),
        longitude=r.get("longitude"),
        accuracy=r.get("accuracy"),
        device_id=r.get("device_id"),
    )


def _to_correction(r: Dict[str, Any]) -> Correction:
    return Correction(
        correction_id=int(r["correction_id"]),
        entry_id=int(r["entry_id"]) if r.get("entry_id") is not None else None,
        worker_id=int(r["worker_id"]),
        reason=r["reason"],
        status=CorrectionStatus(r["status"]),
        created_at=r["created_at"],
        resolved_at=r.get("resolved_at"),
        resolved_by=int(r["resolved_by"]) if r.get("resolved_by") is not None else None,
        resolution_note=r.get("resolution_note"),
    )


class MySQLEntryRepository(EntryRepository):
    """MySQL-backed store.

    The "one open entry per worker" and "one running break per entry" rules
    are enforced by unique keys on generated ``open_marker`` columns, so a
    lost race surfaces as an IntegrityError which is mapped to ``None``.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def open_entry(self, *, worker_id: int, start: datetime, created_at: datetime) -> Optional[AttendanceEntry]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO time_entries(worker_id, start_at, status, created_at)
                    VALUES(%s,%s,%s,%s)
                    """,
                    (worker_id, start, EntryStatus.OPEN.value, created_at),
                )
                entry_id = int(cur.lastrowid)
        except mysql_errors.IntegrityError:
            return None
        return AttendanceEntry(entry_id=entry_id, worker_id=worker_id, start=start, end=None, status=EntryStatus.OPEN)

    def get_entry(self, entry_id: int) -> Optional[AttendanceEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ENTRY_COLUMNS} FROM time_entries WHERE entry_id=%s", (entry_id,))
            r = fetchone(cur)
            return _to_entry(r) if r else None

    def get_open_entry(self, worker_id: int) -> Optional[AttendanceEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ENTRY_COLUMNS}
                FROM time_entries
                WHERE worker_id=%s AND end_at IS NULL
                LIMIT 1
                """,
                (worker_id,),
            )
            r = fetchone(cur)
            return _to_entry(r) if r else None

    def close_entry(self, *, entry_id: int, end: datetime) -> Optional[AttendanceEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_entries
                SET end_at=%s, status=%s
                WHERE entry_id=%s AND end_at IS NULL
                """,
                (end, EntryStatus.CLOSED.value, entry_id),
            )
            if cur.rowcount == 0:
                return None
            cur.execute(f"SELECT {_ENTRY_COLUMNS} FROM time_entries WHERE entry_id=%s", (entry_id,))
            return _to_entry(fetchone(cur))

    def list_entries(self, *, worker_id: Optional[int] = None) -> Sequence[AttendanceEntry]:
        sql = f"SELECT {_ENTRY_COLUMNS} FROM time_entries"
        params: tuple = ()
        if worker_id is not None:
            sql += " WHERE worker_id=%s"
            params = (worker_id,)
        sql += " ORDER BY start_at DESC, entry_id DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [_to_entry(r) for r in fetchall(cur)]

    def open_break(self, *, entry_id: int, start: datetime) -> Optional[BreakInterval]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute("INSERT INTO breaks(entry_id, start_at) VALUES(%s,%s)", (entry_id, start))
                break_id = int(cur.lastrowid)
        except mysql_errors.IntegrityError:
            return None
        return BreakInterval(break_id=break_id, entry_id=entry_id, start=start, end=None)

    def get_break(self, break_id: int) -> Optional[BreakInterval]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_BREAK_COLUMNS} FROM breaks WHERE break_id=%s", (break_id,))
            r = fetchone(cur)
            return _to_break(r) if r else None

    def get_open_break(self, entry_id: int) -> Optional[BreakInterval]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_BREAK_COLUMNS} FROM breaks WHERE entry_id=%s AND end_at IS NULL LIMIT 1",
                (entry_id,),
            )
            r = fetchone(cur)
            return _to_break(r) if r else None

    def close_break(self, *, break_id: int, end: datetime) -> Optional[BreakInterval]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE breaks SET end_at=%s WHERE break_id=%s AND end_at IS NULL", (end, break_id))
            if cur.rowcount == 0:
                return None
            cur.execute(f"SELECT {_BREAK_COLUMNS} FROM breaks WHERE break_id=%s", (break_id,))
            return _to_break(fetchone(cur))

    def list_breaks(self, entry_id: int) -> Sequence[BreakInterval]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_BREAK_COLUMNS} FROM breaks WHERE entry_id=%s ORDER BY start_at, break_id",
                (entry_id,),
            )
            return [_to_break(r) for r in fetchall(cur)]

    def append_geo_event(
        self,
        *,
        entry_id: int,
        worker_id: int,
        kind: GeoEventKind,
        timestamp: datetime,
        payload: GeoPayload,
    ) -> GeoEvent:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO geo_events(entry_id, worker_id, kind, event_at, latitude, longitude, accuracy, device_id)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry_id,
                    worker_id,
                    kind.value,
                    timestamp,
                    payload.latitude,
                    payload.longitude,
                    payload.accuracy,
                    payload.device_id,
                ),
            )
            event_id = int(cur.lastrowid)
        return GeoEvent(
            event_id=event_id,
            entry_id=entry_id,
            worker_id=worker_id,
            kind=kind,
            timestamp=timestamp,
            latitude=payload.latitude,
            longitude=payload.longitude,
            accuracy=payload.accuracy,
            device_id=payload.device_id,
        )

    def list_geo_events(
        self,
        *,
        worker_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        kind: Optional[GeoEventKind] = None,
        limit: int,
    ) -> Sequence[GeoEvent]:
        clauses: list[str] = []
        params: list[Any] = []
        if worker_id is not None:
            clauses.append("worker_id=%s")
            params.append(worker_id)
        if start is not None:
            clauses.append("event_at>=%s")
            params.append(start)
        if end is not None:
            clauses.append("event_at<=%s")
            params.append(end)
        if kind is not None:
            clauses.append("kind=%s")
            params.append(kind.value)

        sql = f"SELECT {_EVENT_COLUMNS} FROM geo_events"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY event_at DESC, event_id DESC LIMIT %s"
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_event(r) for r in fetchall(cur)]

    def create_correction(
        self, *, entry_id: Optional[int], worker_id: int, reason: str, created_at: datetime
    ) -> Correction:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO corrections(entry_id, worker_id, reason, status, created_at)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (entry_id, worker_id, reason, CorrectionStatus.PENDING.value, created_at),
            )
            correction_id = int(cur.lastrowid)
        return Correction(
            correction_id=correction_id,
            entry_id=entry_id,
            worker_id=worker_id,
            reason=reason,
            status=CorrectionStatus.PENDING,
            created_at=created_at,
        )

    def get_correction(self, correction_id: int) -> Optional[Correction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_CORRECTION_COLUMNS} FROM corrections WHERE correction_id=%s", (correction_id,))
            r = fetchone(cur)
            return _to_correction(r) if r else None

    def decide_correction(
        self,
        *,
        correction_id: int,
        status: CorrectionStatus,
        resolved_by: int,
        resolved_at: datetime,
        note: Optional[str] = None,
    ) -> Optional[Correction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE corrections
                SET status=%s, resolved_by=%s, resolved_at=%s, resolution_note=%s
                WHERE correction_id=%s AND status=%s
                """,
                (status.value, resolved_by, resolved_at, note, correction_id, CorrectionStatus.PENDING.value),
            )
            if cur.rowcount == 0:
                return None
            cur.execute(f"SELECT {_CORRECTION_COLUMNS} FROM corrections WHERE correction_id=%s", (correction_id,))
            return _to_correction(fetchone(cur))

    def list_corrections(self, *, worker_id: Optional[int] = None) -> Sequence[Correction]:
        sql = f"SELECT {_CORRECTION_COLUMNS} FROM corrections"
        params: tuple = ()
        if worker_id is not None:
            sql += " WHERE worker_id=%s"
            params = (worker_id,)
        sql += " ORDER BY created_at DESC, correction_id DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [_to_correction(r) for r in fetchall(cur)]
