from __future__ import annotations

from typing import Protocol, Sequence

from .model import AuditRecord


class AuditSink(Protocol):
    """Append-only destination for audit records."""

    def write(self, record: AuditRecord) -> None:
        raise NotImplementedError

    def list_recent(self, limit: int) -> Sequence[AuditRecord]:
        raise NotImplementedError
