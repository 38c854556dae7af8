from __future__ import annotations

from typing import Optional, Protocol

from .model import WorkerContact


class WorkerDirectory(Protocol):
    """Read-only lookup of where to reach a worker."""

    def get_contact(self, worker_id: int) -> Optional[WorkerContact]:
        raise NotImplementedError
