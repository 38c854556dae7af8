from __future__ import annotations

from typing import Sequence


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class ForbiddenError(AuthorizationError):
    """Caller is neither the owner of the resource nor privileged."""


class NotFoundError(DomainError):
    """Referenced entry, break, shift or correction does not exist."""


class AlreadyOpenError(DomainError):
    """The worker already has an open attendance entry."""


class EntryClosedError(DomainError):
    """The attendance entry is closed."""


class OpenBreakPresentError(EntryClosedError):
    """Clock-out rejected because a break is still running."""


class AlreadyOnBreakError(DomainError):
    """The entry already has a running break."""


class NotOpenError(DomainError):
    """The break was already ended."""


class ComplianceIncompleteError(DomainError):
    """Clock-in rejected because compliance settings are incomplete."""

    def __init__(self, missing: Sequence[object]):
        self.missing = list(missing)
        super().__init__(f"Compliance settings incomplete ({len(self.missing)} missing)")


class NotificationUnavailableError(DomainError):
    """Outbound message delivery failed or timed out."""
