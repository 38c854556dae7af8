from __future__ import annotations

import copy
from datetime import datetime, timedelta

import pytest

from src.timeclock.timeclock.container import STORAGE_MEMORY, build_container
from src.timeclock.timeclock.core.enums import Role
from src.timeclock.timeclock.core.exceptions import NotificationUnavailableError
from src.timeclock.timeclock.rota.scope import Scope
from src.timeclock.timeclock.settings.provider import InMemorySettingsProvider
from src.timeclock.timeclock.users.memory_repository import InMemoryWorkerDirectory
from src.timeclock.timeclock.users.model import Principal, WorkerContact

COMPLIANT_SETTINGS = {
    "company": {
        "controller_legal_name": "Acme Servicios SL",
        "controller_cif": "B12345678",
        "controller_address": "Calle Mayor 1, Madrid",
        "controller_contact_email": "legal@acme.test",
        "controller_contact_phone": "+34 600 000 000",
        "has_dpo": False,
    },
    "representatives": {
        "has_worker_reps": False,
        "no_reps_statement": "No worker representatives on staff",
        "recording_method_version": "v1",
        "recording_method_effective_date": "2026-01-01",
    },
    "time": {"payroll_provider_name": "PayCo"},
    "geo": {"geo_notice_version": "v1", "geo_retention_years": 4},
    "privacy": {
        "data_retention_years": 4,
        "privacy_notice_version": "v1",
        "byod_policy_version": "v1",
        "disconnection_policy_version": "v1",
        "record_of_processing_version": "v1",
    },
    "hosting": {"hosting_provider": "EU Cloud", "data_processing_agreement_ref": "DPA-1"},
    "email": {"smtp_host": "smtp.acme.test", "smtp_from": "rota@acme.test"},
    "rota": {"reminders_enabled": True, "checkin_lead_minutes": 30, "checkout_lead_minutes": 15},
    "exports": {"audit_log_retention_years": 4},
}

STORE = Scope("madrid", "store")


class FakeClock:
    def __init__(self, start: datetime):
        self._now = start

    def now(self) -> datetime:
        return self._now

    def set(self, value: datetime) -> None:
        self._now = value

    def advance(self, **kwargs) -> datetime:
        self._now = self._now + timedelta(**kwargs)
        return self._now


class FakeNotifier:
    """Records every message; ``fail`` makes the following sends raise."""

    def __init__(self):
        self.sent: list[tuple[str, str, str]] = []
        self.attempts = 0
        self.fail = False

    def send(self, to: str, subject: str, body: str) -> None:
        self.attempts += 1
        if self.fail:
            raise NotificationUnavailableError("smtp down")
        self.sent.append((to, subject, body))


@pytest.fixture
def compliant_settings():
    return copy.deepcopy(COMPLIANT_SETTINGS)


@pytest.fixture
def store_scope():
    return STORE


@pytest.fixture
def clock():
    # Monday
    return FakeClock(datetime(2026, 3, 2, 8, 0, 0))


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def settings(compliant_settings):
    return InMemorySettingsProvider(compliant_settings, env={})


@pytest.fixture
def workers():
    return InMemoryWorkerDirectory(
        [
            WorkerContact(worker_id=7, email="ana@acme.test", full_name="Ana"),
            WorkerContact(worker_id=8, email="luis@acme.test", full_name="Luis"),
            WorkerContact(worker_id=9, email="eva@acme.test", full_name="Eva"),
        ]
    )


@pytest.fixture
def container(settings, clock, notifier, workers):
    return build_container(
        storage=STORAGE_MEMORY,
        settings=settings,
        clock=clock,
        notifier=notifier,
        workers=workers,
    )


@pytest.fixture
def ana():
    return Principal(worker_id=7, role=Role.EMPLOYEE, scopes=(STORE,))


@pytest.fixture
def luis():
    return Principal(worker_id=8, role=Role.EMPLOYEE, scopes=(STORE,))


@pytest.fixture
def boss():
    return Principal(worker_id=2, role=Role.MANAGER, scopes=(STORE,))


@pytest.fixture
def root():
    return Principal(worker_id=1, role=Role.ADMIN, scopes=(STORE,))
