from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from itertools import count
from threading import Lock
from typing import Optional, Sequence

from ..core.enums import CorrectionStatus, EntryStatus, GeoEventKind
from .model import AttendanceEntry, BreakInterval, Correction, GeoEvent, GeoPayload
from .repository import EntryRepository


class InMemoryEntryRepository(EntryRepository):
    """Process-local store. One lock guards every check-then-write."""

    def __init__(self):
        self._lock = Lock()
        self._entry_ids = count(1)
        self._break_ids = count(1)
        self._event_ids = count(1)
        self._correction_ids = count(1)
        self._entries: dict[int, AttendanceEntry] = {}
        self._breaks: dict[int, BreakInterval] = {}
        self._events: list[GeoEvent] = []
        self._corrections: dict[int, Correction] = {}

    def _open_entry_for(self, worker_id: int) -> Optional[AttendanceEntry]:
        for entry in self._entries.values():
            if entry.worker_id == worker_id and entry.is_open:
                return entry
        return None

    def _open_break_for(self, entry_id: int) -> Optional[BreakInterval]:
        for brk in self._breaks.values():
            if brk.entry_id == entry_id and brk.is_open:
                return brk
        return None

    def open_entry(self, *, worker_id: int, start: datetime, created_at: datetime) -> Optional[AttendanceEntry]:
        with self._lock:
            if self._open_entry_for(worker_id) is not None:
                return None
            entry = AttendanceEntry(
                entry_id=next(self._entry_ids),
                worker_id=worker_id,
                start=start,
                end=None,
                status=EntryStatus.OPEN,
            )
            self._entries[entry.entry_id] = entry
            return entry

    def get_entry(self, entry_id: int) -> Optional[AttendanceEntry]:
        with self._lock:
            return self._entries.get(entry_id)

    def get_open_entry(self, worker_id: int) -> Optional[AttendanceEntry]:
        with self._lock:
            return self._open_entry_for(worker_id)

    def close_entry(self, *, entry_id: int, end: datetime) -> Optional[AttendanceEntry]:
        with self._lock:
            entry = self._entries.get(entry_id)
            if entry is None or not entry.is_open:
                return None
            closed = replace(entry, end=end, status=EntryStatus.CLOSED)
            self._entries[entry_id] = closed
            return closed

    def list_entries(self, *, worker_id: Optional[int] = None) -> Sequence[AttendanceEntry]:
        with self._lock:
            rows = [e for e in self._entries.values() if worker_id is None or e.worker_id == worker_id]
        return sorted(rows, key=lambda e: (e.start, e.entry_id), reverse=True)

    def open_break(self, *, entry_id: int, start: datetime) -> Optional[BreakInterval]:
        with self._lock:
            if self._open_break_for(entry_id) is not None:
                return None
            brk = BreakInterval(break_id=next(self._break_ids), entry_id=entry_id, start=start, end=None)
            self._breaks[brk.break_id] = brk
            return brk

    def get_break(self, break_id: int) -> Optional[BreakInterval]:
        with self._lock:
            return self._breaks.get(break_id)

    def get_open_break(self, entry_id: int) -> Optional[BreakInterval]:
        with self._lock:
            return self._open_break_for(entry_id)

    def close_break(self, *, break_id: int, end: datetime) -> Optional[BreakInterval]:
        with self._lock:
            brk = self._breaks.get(break_id)
            if brk is None or not brk.is_open:
                return None
            ended = replace(brk, end=end)
            self._breaks[break_id] = ended
            return ended

    def list_breaks(self, entry_id: int) -> Sequence[BreakInterval]:
        with self._lock:
            rows = [b for b in self._breaks.values() if b.entry_id == entry_id]
        return sorted(rows, key=lambda b: (b.start, b.break_id))

    def append_geo_event(
        self,
        *,
        entry_id: int,
        worker_id: int,
        kind: GeoEventKind,
        timestamp: datetime,
        payload: GeoPayload,
    ) -> GeoEvent:
        with self._lock:
            event = GeoEvent(
                event_id=next(self._event_ids),
                entry_id=entry_id,
                worker_id=worker_id,
                kind=kind,
                timestamp=timestamp,
                latitude=payload.latitude,
                longitude=payload.longitude,
                accuracy=payload.accuracy,
                device_id=payload.device_id,
            )
            self._events.append(event)
            return event

    def list_geo_events(
        self,
        *,
        worker_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        kind: Optional[GeoEventKind] = None,
        limit: int,
    ) -> Sequence[GeoEvent]:
        with self._lock:
            rows = list(self._events)
        if worker_id is not None:
            rows = [e for e in rows if e.worker_id == worker_id]
        if start is not None:
            rows = [e for e in rows if e.timestamp >= start]
        if end is not None:
            rows = [e for e in rows if e.timestamp <= end]
        if kind is not None:
            rows = [e for e in rows if e.kind is kind]
        rows.sort(key=lambda e: (e.timestamp, e.event_id), reverse=True)
        return rows[: int(limit)]

    def create_correction(
        self, *, entry_id: Optional[int], worker_id: int, reason: str, created_at: datetime
    ) -> Correction:
        with self._lock:
            correction = Correction(
                correction_id=next(self._correction_ids),
                entry_id=entry_id,
                worker_id=worker_id,
                reason=reason,
                status=CorrectionStatus.PENDING,
                created_at=created_at,
            )
            self._corrections[correction.correction_id] = correction
            return correction

    def get_correction(self, correction_id: int) -> Optional[Correction]:
        with self._lock:
            return self._corrections.get(correction_id)

    def decide_correction(
        self,
        *,
        correction_id: int,
        status: CorrectionStatus,
        resolved_by: int,
        resolved_at: datetime,
        note: Optional[str] = None,
    ) -> Optional[Correction]:
        with self._lock:
            current = self._corrections.get(correction_id)
            if current is None or current.status is not CorrectionStatus.PENDING:
                return None
            decided = replace(
                current,
                status=status,
                resolved_by=resolved_by,
                resolved_at=resolved_at,
                resolution_note=note,
            )
            self._corrections[correction_id] = decided
            return decided

    def list_corrections(self, *, worker_id: Optional[int] = None) -> Sequence[Correction]:
        with self._lock:
            rows = [c for c in self._corrections.values() if worker_id is None or c.worker_id == worker_id]
        return sorted(rows, key=lambda c: (c.created_at, c.correction_id), reverse=True)
