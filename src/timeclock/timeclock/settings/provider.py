from __future__ import annotations

import copy
import logging
import os
from threading import Lock
from typing import Any, Mapping, Optional, Protocol

from .defaults import DEFAULT_SETTINGS, merge_settings
from .model import EmailConfig, PolicyConfig, SchedulerConfig

logger = logging.getLogger(__name__)


class SettingsProvider(Protocol):
    """Live settings. Callers re-read on every use instead of caching."""

    def get_policy_config(self) -> PolicyConfig:
        raise NotImplementedError

    def get_scheduler_config(self) -> SchedulerConfig:
        raise NotImplementedError

    def get_email_config(self) -> EmailConfig:
        raise NotImplementedError


class InMemorySettingsProvider(SettingsProvider):
    """Settings held in process memory, seeded from the defaults."""

    def __init__(
        self,
        initial: Optional[Mapping[str, Any]] = None,
        *,
        env: Optional[Mapping[str, str]] = None,
    ):
        self._lock = Lock()
        self._settings = merge_settings(DEFAULT_SETTINGS, initial)
        self._env = os.environ if env is None else env

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._settings)

    def update(self, partial: Mapping[str, Any]) -> None:
        with self._lock:
            self._settings = merge_settings(self._settings, partial)
        logger.info("Settings updated: sections=%s", sorted(partial.keys()))

    def get_policy_config(self) -> PolicyConfig:
        return PolicyConfig.from_settings(self.snapshot())

    def get_scheduler_config(self) -> SchedulerConfig:
        return SchedulerConfig.from_settings(self.snapshot())

    def get_email_config(self) -> EmailConfig:
        return EmailConfig.from_settings(self.snapshot(), self._env)
