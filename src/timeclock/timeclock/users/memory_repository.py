from __future__ import annotations

from threading import Lock
from typing import Iterable, Optional

from .model import WorkerContact
from .repository import WorkerDirectory


class InMemoryWorkerDirectory(WorkerDirectory):
    def __init__(self, contacts: Iterable[WorkerContact] = ()):
        self._lock = Lock()
        self._by_id: dict[int, WorkerContact] = {c.worker_id: c for c in contacts}

    def get_contact(self, worker_id: int) -> Optional[WorkerContact]:
        with self._lock:
            return self._by_id.get(int(worker_id))
