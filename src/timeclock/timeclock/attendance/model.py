from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from ..common.datetime_utils import minutes_between
from ..core.enums import CorrectionStatus, EntryStatus, GeoEventKind, WorkerState


@dataclass(frozen=True)
class AttendanceEntry:
    """One open/closed attendance session for a worker."""

    entry_id: int
    worker_id: int
    start: datetime
    end: Optional[datetime]
    status: EntryStatus

    @property
    def is_open(self) -> bool:
        return self.end is None


@dataclass(frozen=True)
class BreakInterval:
    break_id: int
    entry_id: int
    start: datetime
    end: Optional[datetime]

    @property
    def is_open(self) -> bool:
        return self.end is None


@dataclass(frozen=True)
class GeoPayload:
    """Caller-supplied location fix. Every field is optional."""

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accuracy: Optional[float] = None
    device_id: Optional[str] = None
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class GeoEvent:
    event_id: int
    entry_id: int
    worker_id: int
    kind: GeoEventKind
    timestamp: datetime
    latitude: Optional[float]
    longitude: Optional[float]
    accuracy: Optional[float]
    device_id: Optional[str]


@dataclass(frozen=True)
class Correction:
    """Request to amend an entry. The entry itself is never reopened."""

    correction_id: int
    entry_id: Optional[int]
    worker_id: int
    reason: str
    status: CorrectionStatus
    created_at: datetime
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[int] = None
    resolution_note: Optional[str] = None


@dataclass(frozen=True)
class EntryWithBreaks:
    entry: AttendanceEntry
    breaks: list[BreakInterval] = field(default_factory=list)


@dataclass(frozen=True)
class AttendanceSnapshot:
    worker_id: int
    state: WorkerState
    entry: Optional[AttendanceEntry] = None
    open_break: Optional[BreakInterval] = None


def worked_minutes(entry: AttendanceEntry, breaks: Iterable[BreakInterval], now: datetime) -> int:
    """Elapsed minutes minus finished breaks, rounded half-up.

    Open entries are measured up to ``now``; a break still running is
    neither counted as worked nor deducted until it ends.
    """
    end = entry.end if entry.end is not None else now
    total = max(0.0, minutes_between(entry.start, end))
    deducted = sum(minutes_between(b.start, b.end) for b in breaks if b.end is not None)
    return int(math.floor(total - deducted + 0.5))
