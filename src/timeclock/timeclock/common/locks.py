from __future__ import annotations

from contextlib import contextmanager
from threading import Lock
from typing import Hashable, Iterator


class KeyedLock:
    """One mutex per key, so writes for different keys never contend.

    Entries are reference counted and dropped once no thread holds or
    waits on them.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: dict[Hashable, list] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            slot = self._locks.get(key)
            if slot is None:
                slot = [Lock(), 0]
                self._locks[key] = slot
            slot[1] += 1

        lock: Lock = slot[0]
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                slot[1] -= 1
                if slot[1] == 0:
                    self._locks.pop(key, None)
