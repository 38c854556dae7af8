from __future__ import annotations

import logging
from threading import Event, Lock, Thread
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RecurringTask:
    """
    Run ``action`` every ``interval()`` seconds on a daemon thread.

    The interval is re-read before every wait, so a settings change applies
    from the next cycle. Runs never overlap: if a run is still in progress
    when the next one is due (for example, ``run_once`` called from another
    thread), the new run is skipped.
    """

    def __init__(self, action: Callable[[], object], interval: Callable[[], float], *, name: str = "RecurringTask"):
        self._action = action
        self._interval = interval
        self._name = name
        self._running = Lock()
        self._stop = Event()
        self._thread: Optional[Thread] = None

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "RecurringTask":
        if self.is_alive:
            return self
        self._stop.clear()
        self._thread = Thread(target=self.__run, name=self._name, daemon=True)
        self._thread.start()
        logger.info("%s started.", self._name)
        return self

    def stop(self, timeout: float = 10.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("%s stopped.", self._name)

    def run_once(self) -> bool:
        """Run the action now. Returns False when a run is already in progress."""
        if not self._running.acquire(blocking=False):
            logger.warning("%s: previous run still in progress, skipping this one.", self._name)
            return False
        try:
            self._action()
        except Exception:
            logger.exception("%s: run failed.", self._name)
        finally:
            self._running.release()
        return True

    def __run(self):
        while not self._stop.wait(self.__next_delay()):
            self.run_once()

    def __next_delay(self) -> float:
        try:
            return max(0.0, float(self._interval()))
        except Exception:
            logger.exception("%s: could not read interval, retrying in 60s.", self._name)
            return 60.0

    def __enter__(self) -> "RecurringTask":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
