from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import CorrectionStatus, GeoEventKind
from .model import AttendanceEntry, BreakInterval, Correction, GeoEvent, GeoPayload


class EntryRepository(Protocol):
    """Persistent store of entries, breaks, geo events and corrections.

    Write methods that guard an invariant are atomic check-then-write and
    signal a lost race by returning ``None`` instead of raising.
    """

    def open_entry(self, *, worker_id: int, start: datetime, created_at: datetime) -> Optional[AttendanceEntry]:
        """Create an open entry unless the worker already has one."""

        raise NotImplementedError

    def get_entry(self, entry_id: int) -> Optional[AttendanceEntry]:
        raise NotImplementedError

    def get_open_entry(self, worker_id: int) -> Optional[AttendanceEntry]:
        raise NotImplementedError

    def close_entry(self, *, entry_id: int, end: datetime) -> Optional[AttendanceEntry]:
        """Close the entry if it is still open."""

        raise NotImplementedError

    def list_entries(self, *, worker_id: Optional[int] = None) -> Sequence[AttendanceEntry]:
        """Most recent first."""

        raise NotImplementedError

    def open_break(self, *, entry_id: int, start: datetime) -> Optional[BreakInterval]:
        """Create a running break unless the entry already has one."""

        raise NotImplementedError

    def get_break(self, break_id: int) -> Optional[BreakInterval]:
        raise NotImplementedError

    def get_open_break(self, entry_id: int) -> Optional[BreakInterval]:
        raise NotImplementedError

    def close_break(self, *, break_id: int, end: datetime) -> Optional[BreakInterval]:
        """End the break if it is still running."""

        raise NotImplementedError

    def list_breaks(self, entry_id: int) -> Sequence[BreakInterval]:
        """Oldest first."""

        raise NotImplementedError

    def append_geo_event(
        self,
        *,
        entry_id: int,
        worker_id: int,
        kind: GeoEventKind,
        timestamp: datetime,
        payload: GeoPayload,
    ) -> GeoEvent:
        raise NotImplementedError

    def list_geo_events(
        self,
        *,
        worker_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        kind: Optional[GeoEventKind] = None,
        limit: int,
    ) -> Sequence[GeoEvent]:
        """Ordered by event timestamp, newest first."""

        raise NotImplementedError

    def create_correction(
        self, *, entry_id: Optional[int], worker_id: int, reason: str, created_at: datetime
    ) -> Correction:
        raise NotImplementedError

    def get_correction(self, correction_id: int) -> Optional[Correction]:
        raise NotImplementedError

    def decide_correction(
        self,
        *,
        correction_id: int,
        status: CorrectionStatus,
        resolved_by: int,
        resolved_at: datetime,
        note: Optional[str] = None,
    ) -> Optional[Correction]:
        raise NotImplementedError

    def list_corrections(self, *, worker_id: Optional[int] = None) -> Sequence[Correction]:
        raise NotImplementedError
