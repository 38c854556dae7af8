from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class RequirementKind(str, Enum):
    REQUIRED = "required"
    MINIMUM = "minimum"


@dataclass(frozen=True)
class MissingRequirement:
    """One unmet item of the compliance checklist.

    ``key`` is the dotted settings path (``privacy.data_retention_years``).
    """

    key: str
    label: str
    kind: RequirementKind = RequirementKind.REQUIRED

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class ComplianceStatus:
    ready: bool
    missing: list[MissingRequirement]
