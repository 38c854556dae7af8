from __future__ import annotations

from datetime import date, time

import pytest

from src.timeclock.timeclock.core.enums import ReminderKind
from src.timeclock.timeclock.core.exceptions import (
    ForbiddenError,
    NotFoundError,
    NotificationUnavailableError,
    ValidationError,
)
from src.timeclock.timeclock.rota.model import ShiftDraft

MONDAY = date(2026, 3, 2)
TUESDAY = date(2026, 3, 3)
NEXT_MONDAY = date(2026, 3, 9)


def shift(work_date=MONDAY, worker=None, start=time(9), end=time(17), role="till"):
    return ShiftDraft(work_date=work_date, start_time=start, end_time=end, role=role, assigned_worker_id=worker)


@pytest.fixture
def rota(container):
    return container.rota_service


@pytest.fixture
def three_shifts(rota, root):
    return [
        rota.upsert_shift(root, shift(worker=7)),
        rota.upsert_shift(root, shift(TUESDAY, worker=8)),
        rota.upsert_shift(root, shift(TUESDAY, worker=7, start=time(18), end=time(22))),
    ]


def test_unpublished_week_is_hidden_from_employees(rota, three_shifts, ana, root):
    assert rota.list_shifts(ana, MONDAY) == []
    assert len(rota.list_shifts(root, MONDAY)) == 3
    assert rota.get_week(ana, MONDAY).published is False


def test_published_week_shows_only_own_shifts(rota, three_shifts, ana, luis, root):
    rota.publish(root, MONDAY, notify=False)

    assert [s.shift_id for s in rota.list_shifts(ana, MONDAY)] == [three_shifts[0].shift_id, three_shifts[2].shift_id]
    assert [s.shift_id for s in rota.list_shifts(luis, MONDAY)] == [three_shifts[1].shift_id]
    assert rota.get_week(ana, MONDAY).published is True


def test_week_start_is_normalized_to_monday(rota, three_shifts, root):
    assert three_shifts[1].week_start == MONDAY
    assert len(rota.list_shifts(root, date(2026, 3, 5))) == 3


def test_get_shift_respects_visibility(rota, three_shifts, ana, luis, root):
    with pytest.raises(NotFoundError):
        rota.get_shift(ana, three_shifts[0].shift_id)

    rota.publish(root, MONDAY, notify=False)
    assert rota.get_shift(ana, three_shifts[0].shift_id) == three_shifts[0]
    with pytest.raises(NotFoundError):
        rota.get_shift(luis, three_shifts[0].shift_id)


def test_employees_cannot_change_the_rota(rota, three_shifts, ana):
    with pytest.raises(ForbiddenError):
        rota.upsert_shift(ana, shift(worker=7))
    with pytest.raises(ForbiddenError):
        rota.delete_shift(ana, three_shifts[0].shift_id)
    with pytest.raises(ForbiddenError):
        rota.publish(ana, MONDAY)
    with pytest.raises(ForbiddenError):
        rota.copy_week(ana, MONDAY, NEXT_MONDAY)


def test_shift_must_end_after_it_starts(rota, root):
    with pytest.raises(ValidationError):
        rota.upsert_shift(root, shift(start=time(17), end=time(9)))


def test_update_and_delete(rota, three_shifts, root):
    first = three_shifts[0]
    updated = rota.upsert_shift(root, shift(worker=8, role="stock"), shift_id=first.shift_id)

    assert updated.shift_id == first.shift_id
    assert (updated.assigned_worker_id, updated.role, updated.scope) == (8, "stock", first.scope)

    rota.delete_shift(root, first.shift_id)
    with pytest.raises(NotFoundError):
        rota.delete_shift(root, first.shift_id)
    assert len(rota.list_shifts(root, MONDAY)) == 2


def test_copy_shift_is_unassigned_by_default(rota, three_shifts, root):
    source = three_shifts[0]
    copy = rota.copy_shift(root, source.shift_id, NEXT_MONDAY)

    assert copy.shift_id != source.shift_id
    assert copy.week_start == NEXT_MONDAY
    assert (copy.start_time, copy.end_time, copy.role) == (source.start_time, source.end_time, source.role)
    assert copy.assigned_worker_id is None

    assigned = rota.copy_shift(root, source.shift_id, TUESDAY, assigned_worker_id=9)
    assert assigned.assigned_worker_id == 9


def test_copy_week_keeps_day_offsets(rota, three_shifts, root):
    created = rota.copy_week(root, MONDAY, NEXT_MONDAY, repeat_weeks=2)

    assert len(created) == 6
    assert sorted({s.week_start for s in created}) == [NEXT_MONDAY, date(2026, 3, 16)]
    next_week = rota.list_shifts(root, NEXT_MONDAY)
    assert sorted(s.work_date for s in next_week) == [NEXT_MONDAY, date(2026, 3, 10), date(2026, 3, 10)]
    assert all(s.assigned_worker_id is None for s in created)


def test_copy_week_overwrite_and_assignments(rota, three_shifts, root):
    rota.upsert_shift(root, shift(NEXT_MONDAY, worker=9))

    rota.copy_week(root, MONDAY, NEXT_MONDAY, include_assignments=True, overwrite=True)

    target = rota.list_shifts(root, NEXT_MONDAY)
    assert len(target) == 3
    assert sorted(s.assigned_worker_id for s in target) == [7, 7, 8]


def test_publish_notifies_each_assigned_worker_once(rota, three_shifts, notifier, root):
    rota.publish(root, MONDAY)

    recipients = sorted(to for to, _, _ in notifier.sent)
    assert recipients == ["ana@acme.test", "luis@acme.test"]
    ana_body = next(body for to, _, body in notifier.sent if to == "ana@acme.test")
    assert "2026-03-02 09:00-17:00" in ana_body
    assert "2026-03-03 18:00-22:00" in ana_body


def test_failed_publish_notification_keeps_week_published(rota, three_shifts, notifier, ana, root):
    notifier.fail = True

    with pytest.raises(NotificationUnavailableError):
        rota.publish(root, MONDAY)

    assert notifier.attempts == 2
    assert rota.get_week(ana, MONDAY).published is True


def test_unpublish_hides_week_again(rota, three_shifts, ana, root):
    rota.publish(root, MONDAY, notify=False)
    rota.unpublish(root, MONDAY)

    assert rota.list_shifts(ana, MONDAY) == []


def test_notify_week_counts_sent_messages(rota, three_shifts, root):
    assert rota.notify_week(root, MONDAY) == 2


def test_manual_day_reminders(rota, three_shifts, notifier, boss):
    sent = rota.send_reminders_for_date(boss, TUESDAY, ReminderKind.CHECK_OUT)

    assert sent == 2
    assert {subject for _, subject, _ in notifier.sent} == {"Clock out reminder"}


def test_rota_is_partitioned_by_scope(rota, three_shifts, root):
    from src.timeclock.timeclock.rota.scope import Scope

    other = Scope("sevilla", "store")
    rota.upsert_shift(root, ShiftDraft(MONDAY, time(8), time(12), scope=other))

    assert len(rota.list_shifts(root, MONDAY)) == 3
    assert len(rota.list_shifts(root, MONDAY, other)) == 1
