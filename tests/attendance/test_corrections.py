from __future__ import annotations

from datetime import datetime

import pytest

from src.timeclock.timeclock.core.enums import CorrectionStatus
from src.timeclock.timeclock.core.exceptions import ForbiddenError, NotFoundError, ValidationError


@pytest.fixture
def closed_entry(container, ana):
    service = container.attendance_service
    entry = service.clock_in(ana.worker_id, timestamp=datetime(2026, 3, 2, 9))
    return service.clock_out(entry.entry_id, principal=ana, timestamp=datetime(2026, 3, 2, 17))


def test_request_and_approve(container, closed_entry, ana, boss):
    service = container.attendance_service
    correction = service.request_correction(ana, closed_entry.entry_id, "Forgot to clock out at 16:00")
    assert correction.status is CorrectionStatus.PENDING

    decided = service.decide_correction(boss, correction.correction_id, CorrectionStatus.APPROVED, "ok")

    assert decided.status is CorrectionStatus.APPROVED
    assert decided.resolved_by == boss.worker_id
    assert decided.resolution_note == "ok"
    # the entry itself is untouched
    assert service.get_entry(ana, closed_entry.entry_id).entry == closed_entry


def test_reason_is_required(container, closed_entry, ana):
    with pytest.raises(ValidationError):
        container.attendance_service.request_correction(ana, closed_entry.entry_id, "   ")


def test_cannot_request_for_another_workers_entry(container, closed_entry, luis):
    with pytest.raises(ForbiddenError):
        container.attendance_service.request_correction(luis, closed_entry.entry_id, "not mine")


def test_only_privileged_can_decide(container, closed_entry, ana):
    service = container.attendance_service
    correction = service.request_correction(ana, closed_entry.entry_id, "wrong start")

    with pytest.raises(ForbiddenError):
        service.decide_correction(ana, correction.correction_id, CorrectionStatus.APPROVED)


def test_decision_is_final(container, closed_entry, ana, boss):
    service = container.attendance_service
    correction = service.request_correction(ana, closed_entry.entry_id, "wrong start")
    service.decide_correction(boss, correction.correction_id, CorrectionStatus.REJECTED)

    with pytest.raises(ValidationError):
        service.decide_correction(boss, correction.correction_id, CorrectionStatus.APPROVED)
    with pytest.raises(NotFoundError):
        service.decide_correction(boss, 999, CorrectionStatus.APPROVED)


def test_listing_visibility(container, closed_entry, ana, luis, boss):
    service = container.attendance_service
    service.request_correction(ana, closed_entry.entry_id, "a")
    service.request_correction(luis, None, "general question")

    assert [c.worker_id for c in service.list_corrections(ana)] == [7]
    assert {c.worker_id for c in service.list_corrections(boss)} == {7, 8}
