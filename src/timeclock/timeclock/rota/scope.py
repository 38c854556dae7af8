from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..core.constants import DEFAULT_DEPARTMENT, DEFAULT_LOCATION
from ..core.enums import Role

if TYPE_CHECKING:
    from ..users.model import Principal


@dataclass(frozen=True, order=True)
class Scope:
    """(location, department) partition key for rota and staffing data."""

    location: str
    department: str

    @classmethod
    def default(cls) -> "Scope":
        return cls(DEFAULT_LOCATION, DEFAULT_DEPARTMENT)

    def __str__(self) -> str:
        return f"{self.location}/{self.department}"


def resolve_scope(principal: "Principal", requested: Optional[Scope] = None) -> Scope:
    """Pick the scope a caller operates on.

    Admins may select any scope explicitly (a partial request is completed
    from their primary scope). Everyone else gets the requested scope only
    if it is one of theirs, otherwise their primary scope.
    """
    primary = principal.primary_scope

    if principal.role is Role.ADMIN:
        if requested is None:
            return primary
        return Scope(
            location=requested.location.strip() or primary.location,
            department=requested.department.strip() or primary.department,
        )

    if principal.role is Role.MANAGER or principal.role is Role.EMPLOYEE:
        if requested is not None and requested in principal.scopes:
            return requested
        return primary

    raise ValueError(f"Unhandled role: {principal.role!r}")
