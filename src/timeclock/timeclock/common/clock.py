from __future__ import annotations

from datetime import datetime
from typing import Protocol


class Clock(Protocol):
    """Time source injected into services and the reminder scheduler."""

    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock:
    """Wall-clock local time."""

    def now(self) -> datetime:
        return datetime.now()
