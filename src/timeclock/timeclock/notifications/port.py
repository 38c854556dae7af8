from __future__ import annotations

from typing import Protocol


class NotificationPort(Protocol):
    """Outbound delivery of one message to one recipient.

    ``send`` returns on success and raises
    :class:`~timeclock.core.exceptions.NotificationUnavailableError` on any
    failure, timeouts included. It must never block without bound.
    """

    def send(self, to: str, subject: str, body: str) -> None:
        raise NotImplementedError
