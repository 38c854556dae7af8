from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..audit.model import AuditAction
from ..audit.service import AuditLogger
from ..common.clock import Clock, SystemClock
from ..common.locks import KeyedLock
from ..common.validators import require_non_empty
from ..compliance.service import ComplianceService
from ..core.constants import DEFAULT_GEO_QUERY_LIMIT, MAX_GEO_QUERY_LIMIT, MIN_GEO_QUERY_LIMIT
from ..core.enums import CorrectionStatus, GeoEventKind, WorkerState
from ..core.exceptions import (
    AlreadyOnBreakError,
    AlreadyOpenError,
    EntryClosedError,
    ForbiddenError,
    NotFoundError,
    NotOpenError,
    OpenBreakPresentError,
    ValidationError,
)
from ..users.model import Principal
from .model import (
    AttendanceEntry,
    AttendanceSnapshot,
    BreakInterval,
    Correction,
    EntryWithBreaks,
    GeoEvent,
    GeoPayload,
    worked_minutes,
)
from .repository import EntryRepository

logger = logging.getLogger(__name__)


def clamp_geo_limit(limit: Optional[int]) -> int:
    if limit is None:
        return DEFAULT_GEO_QUERY_LIMIT
    return max(MIN_GEO_QUERY_LIMIT, min(MAX_GEO_QUERY_LIMIT, int(limit)))


def _geo_metadata(geo: Optional[GeoPayload]) -> dict:
    if geo is None:
        return {}
    return {
        "lat": geo.latitude,
        "lon": geo.longitude,
        "accuracy": geo.accuracy,
        "device_id": geo.device_id,
    }


class AttendanceService:
    """Per-worker attendance lifecycle.

    ``NoOpenEntry -> Working -> OnBreak -> Working ... -> NoOpenEntry``.
    Every transition for a worker runs under that worker's lock; the store
    additionally refuses a second open entry/break, so the invariants hold
    across processes sharing one database too.

    A clock-out while a break is running is rejected with
    :class:`OpenBreakPresentError`; the break must be ended first.
    """

    def __init__(
        self,
        entries: EntryRepository,
        compliance: ComplianceService,
        audit: AuditLogger,
        *,
        clock: Clock | None = None,
        locks: KeyedLock | None = None,
    ):
        self._entries = entries
        self._compliance = compliance
        self._audit = audit
        self._clock = clock or SystemClock()
        self._locks = locks or KeyedLock()

    def _owned_entry(self, entry_id: int, principal: Principal) -> AttendanceEntry:
        entry = self._entries.get_entry(entry_id)
        if entry is None:
            raise NotFoundError(f"Entry {entry_id} not found")
        if not principal.can_act_for(entry.worker_id):
            raise ForbiddenError("Not allowed to modify another worker's entry")
        return entry

    def _append_geo(
        self,
        entry: AttendanceEntry,
        kind: GeoEventKind,
        geo: Optional[GeoPayload],
        timestamp: datetime,
    ) -> Optional[GeoEvent]:
        if geo is None:
            return None
        return self._entries.append_geo_event(
            entry_id=entry.entry_id,
            worker_id=entry.worker_id,
            kind=kind,
            timestamp=geo.timestamp or timestamp,
            payload=geo,
        )

    def clock_in(
        self,
        worker_id: int,
        *,
        timestamp: datetime | None = None,
        geo: GeoPayload | None = None,
    ) -> AttendanceEntry:
        self._compliance.ensure_ready()

        now = self._clock.now()
        start = timestamp or now
        with self._locks.hold(worker_id):
            if self._entries.get_open_entry(worker_id) is not None:
                raise AlreadyOpenError("Worker already has an open entry")
            entry = self._entries.open_entry(worker_id=worker_id, start=start, created_at=now)
            if entry is None:
                raise AlreadyOpenError("Worker already has an open entry")
            self._append_geo(entry, GeoEventKind.CLOCK_IN, geo, start)

        logger.info("Worker %s clocked in (entry %s)", worker_id, entry.entry_id)
        self._audit.record(
            actor_id=worker_id,
            action=AuditAction.CLOCK_IN,
            entity_type="time_entry",
            entity_id=entry.entry_id,
            metadata={"start": start.isoformat(), **_geo_metadata(geo)},
        )
        return entry

    def clock_out(
        self,
        entry_id: int,
        *,
        principal: Principal,
        timestamp: datetime | None = None,
        geo: GeoPayload | None = None,
    ) -> AttendanceEntry:
        entry = self._owned_entry(entry_id, principal)
        end = timestamp or self._clock.now()

        with self._locks.hold(entry.worker_id):
            entry = self._entries.get_entry(entry_id) or entry
            if not entry.is_open:
                raise EntryClosedError(f"Entry {entry_id} is already closed")
            if self._entries.get_open_break(entry_id) is not None:
                raise OpenBreakPresentError("End the running break before clocking out")
            if end < entry.start:
                raise ValidationError("Clock-out cannot be earlier than clock-in")
            last_break_end = max((b.end for b in self._entries.list_breaks(entry_id) if b.end), default=None)
            if last_break_end is not None and end < last_break_end:
                raise ValidationError("Clock-out cannot be earlier than the end of a break")
            closed = self._entries.close_entry(entry_id=entry_id, end=end)
            if closed is None:
                raise EntryClosedError(f"Entry {entry_id} is already closed")
            self._append_geo(closed, GeoEventKind.CLOCK_OUT, geo, end)

        logger.info("Worker %s clocked out (entry %s)", closed.worker_id, entry_id)
        self._audit.record(
            actor_id=principal.worker_id,
            action=AuditAction.CLOCK_OUT,
            entity_type="time_entry",
            entity_id=entry_id,
            metadata={"end": end.isoformat(), **_geo_metadata(geo)},
        )
        return closed

    def start_break(
        self,
        entry_id: int,
        *,
        principal: Principal,
        timestamp: datetime | None = None,
        geo: GeoPayload | None = None,
    ) -> BreakInterval:
        entry = self._owned_entry(entry_id, principal)
        start = timestamp or self._clock.now()

        with self._locks.hold(entry.worker_id):
            entry = self._entries.get_entry(entry_id) or entry
            if not entry.is_open:
                raise EntryClosedError(f"Entry {entry_id} is closed")
            if self._entries.get_open_break(entry_id) is not None:
                raise AlreadyOnBreakError("A break is already running")
            if start < entry.start:
                raise ValidationError("Break cannot start before clock-in")
            brk = self._entries.open_break(entry_id=entry_id, start=start)
            if brk is None:
                raise AlreadyOnBreakError("A break is already running")
            self._append_geo(entry, GeoEventKind.BREAK_START, geo, start)

        logger.info("Break %s started on entry %s", brk.break_id, entry_id)
        self._audit.record(
            actor_id=principal.worker_id,
            action=AuditAction.BREAK_START,
            entity_type="break",
            entity_id=brk.break_id,
            metadata={"entry_id": entry_id, **_geo_metadata(geo)},
        )
        return brk

    def end_break(
        self,
        entry_id: int,
        break_id: int,
        *,
        principal: Principal,
        timestamp: datetime | None = None,
        geo: GeoPayload | None = None,
    ) -> BreakInterval:
        entry = self._owned_entry(entry_id, principal)
        end = timestamp or self._clock.now()

        with self._locks.hold(entry.worker_id):
            brk = self._entries.get_break(break_id)
            if brk is None or brk.entry_id != entry_id:
                raise NotFoundError(f"Break {break_id} not found")
            if not brk.is_open:
                raise NotOpenError(f"Break {break_id} has already ended")
            if end < brk.start:
                raise ValidationError("Break cannot end before it started")
            ended = self._entries.close_break(break_id=break_id, end=end)
            if ended is None:
                raise NotOpenError(f"Break {break_id} has already ended")
            self._append_geo(entry, GeoEventKind.BREAK_END, geo, end)

        logger.info("Break %s ended on entry %s", break_id, entry_id)
        self._audit.record(
            actor_id=principal.worker_id,
            action=AuditAction.BREAK_END,
            entity_type="break",
            entity_id=break_id,
            metadata={"entry_id": entry_id, **_geo_metadata(geo)},
        )
        return ended

    def record_geo_event(
        self,
        entry_id: int,
        kind: GeoEventKind,
        payload: GeoPayload,
        *,
        principal: Principal | None = None,
        timestamp: datetime | None = None,
    ) -> GeoEvent:
        """Append a geo fix to an entry. Closed entries are accepted."""
        entry = self._entries.get_entry(entry_id)
        if entry is None:
            raise NotFoundError(f"Entry {entry_id} not found")
        if principal is not None and not principal.can_act_for(entry.worker_id):
            raise ForbiddenError("Not allowed to record events for another worker")

        event = self._entries.append_geo_event(
            entry_id=entry_id,
            worker_id=entry.worker_id,
            kind=kind,
            timestamp=timestamp or payload.timestamp or self._clock.now(),
            payload=payload,
        )
        self._audit.record(
            actor_id=principal.worker_id if principal else entry.worker_id,
            action=AuditAction.GEO_CAPTURE,
            entity_type="geo_event",
            entity_id=event.event_id,
            metadata={"entry_id": entry_id, "kind": kind.value, **_geo_metadata(payload)},
        )
        return event

    def compute_worked_minutes(self, entry: AttendanceEntry, *, now: datetime | None = None) -> int:
        breaks = self._entries.list_breaks(entry.entry_id)
        return worked_minutes(entry, breaks, now or self._clock.now())

    def get_state(self, worker_id: int) -> AttendanceSnapshot:
        entry = self._entries.get_open_entry(worker_id)
        if entry is None:
            return AttendanceSnapshot(worker_id=worker_id, state=WorkerState.NO_OPEN_ENTRY)
        open_break = self._entries.get_open_break(entry.entry_id)
        if open_break is None:
            return AttendanceSnapshot(worker_id=worker_id, state=WorkerState.WORKING, entry=entry)
        return AttendanceSnapshot(
            worker_id=worker_id,
            state=WorkerState.ON_BREAK,
            entry=entry,
            open_break=open_break,
        )

    def get_entry(self, principal: Principal, entry_id: int) -> EntryWithBreaks:
        entry = self._entries.get_entry(entry_id)
        if entry is None:
            raise NotFoundError(f"Entry {entry_id} not found")
        if not principal.can_act_for(entry.worker_id):
            raise ForbiddenError("Not allowed to view another worker's entry")
        return EntryWithBreaks(entry=entry, breaks=list(self._entries.list_breaks(entry_id)))

    def list_entries(self, principal: Principal, *, worker_id: int | None = None) -> list[EntryWithBreaks]:
        if not principal.is_privileged:
            worker_id = principal.worker_id
        return [
            EntryWithBreaks(entry=e, breaks=list(self._entries.list_breaks(e.entry_id)))
            for e in self._entries.list_entries(worker_id=worker_id)
        ]

    def list_geo_events(
        self,
        principal: Principal,
        *,
        worker_id: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        kind: GeoEventKind | None = None,
        limit: int | None = None,
    ) -> list[GeoEvent]:
        if not principal.is_privileged:
            worker_id = principal.worker_id
        return list(
            self._entries.list_geo_events(
                worker_id=worker_id,
                start=start,
                end=end,
                kind=kind,
                limit=clamp_geo_limit(limit),
            )
        )

    def request_correction(self, principal: Principal, entry_id: int | None, reason: str) -> Correction:
        reason = require_non_empty(reason, "reason")
        worker_id = principal.worker_id
        if entry_id is not None:
            entry = self._owned_entry(entry_id, principal)
            worker_id = entry.worker_id

        correction = self._entries.create_correction(
            entry_id=entry_id,
            worker_id=worker_id,
            reason=reason,
            created_at=self._clock.now(),
        )
        logger.info("Correction %s requested for entry %s", correction.correction_id, entry_id)
        self._audit.record(
            actor_id=principal.worker_id,
            action=AuditAction.CORRECTION_REQUESTED,
            entity_type="correction",
            entity_id=correction.correction_id,
            metadata={"entry_id": entry_id},
        )
        return correction

    def decide_correction(
        self,
        principal: Principal,
        correction_id: int,
        status: CorrectionStatus,
        note: str | None = None,
    ) -> Correction:
        if not principal.is_privileged:
            raise ForbiddenError("Only managers and admins can decide corrections")
        if status is CorrectionStatus.PENDING:
            raise ValidationError("status must be approved or rejected")

        current = self._entries.get_correction(correction_id)
        if current is None:
            raise NotFoundError(f"Correction {correction_id} not found")
        if current.status is not CorrectionStatus.PENDING:
            raise ValidationError(f"Correction {correction_id} was already {current.status.value}")

        decided = self._entries.decide_correction(
            correction_id=correction_id,
            status=status,
            resolved_by=principal.worker_id,
            resolved_at=self._clock.now(),
            note=note,
        )
        if decided is None:
            raise ValidationError(f"Correction {correction_id} was already decided")

        logger.info("Correction %s %s by %s", correction_id, status.value, principal.worker_id)
        self._audit.record(
            actor_id=principal.worker_id,
            action=AuditAction.CORRECTION_UPDATE,
            entity_type="correction",
            entity_id=correction_id,
            metadata={"status": status.value},
        )
        return decided

    def list_corrections(self, principal: Principal) -> list[Correction]:
        worker_id = None if principal.is_privileged else principal.worker_id
        return list(self._entries.list_corrections(worker_id=worker_id))
