from __future__ import annotations

from threading import Lock
from typing import Sequence

from .model import AuditRecord
from .repository import AuditSink


class InMemoryAuditSink(AuditSink):
    def __init__(self):
        self._lock = Lock()
        self._records: list[AuditRecord] = []

    def write(self, record: AuditRecord) -> None:
        with self._lock:
            self._records.append(record)

    def list_recent(self, limit: int) -> Sequence[AuditRecord]:
        with self._lock:
            return list(reversed(self._records))[: int(limit)]

    @property
    def records(self) -> list[AuditRecord]:
        with self._lock:
            return list(self._records)
