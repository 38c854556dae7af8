from __future__ import annotations

from ..core.exceptions import ComplianceIncompleteError
from ..settings.provider import SettingsProvider
from .gate import ComplianceGate
from .model import ComplianceStatus


class ComplianceService:
    """Reads the live policy settings on every call and runs the gate."""

    def __init__(self, settings: SettingsProvider, gate: ComplianceGate | None = None):
        self._settings = settings
        self._gate = gate or ComplianceGate()

    def status(self) -> ComplianceStatus:
        missing = self._gate.evaluate(self._settings.get_policy_config())
        return ComplianceStatus(ready=not missing, missing=missing)

    def ensure_ready(self) -> None:
        missing = self._gate.evaluate(self._settings.get_policy_config())
        if missing:
            raise ComplianceIncompleteError(missing)
