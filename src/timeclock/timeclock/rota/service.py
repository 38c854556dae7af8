from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Optional

from ..audit.model import AuditAction
from ..audit.service import AuditLogger
from ..common.clock import Clock, SystemClock
from ..common.datetime_utils import week_start_for
from ..common.locks import KeyedLock
from ..core.enums import ReminderKind, Role
from ..core.exceptions import ForbiddenError, NotFoundError, NotificationUnavailableError, ValidationError
from ..notifications.messages import PUBLISH_SUBJECT, day_reminder_body, publish_body, reminder_subject
from ..notifications.port import NotificationPort
from ..users.model import Principal
from ..users.repository import WorkerDirectory
from .model import RotaShift, RotaWeek, ShiftDraft
from .repository import RotaRepository
from .scope import Scope, resolve_scope

logger = logging.getLogger(__name__)


def _require_privileged(principal: Principal) -> None:
    if not principal.is_privileged:
        raise ForbiddenError("Only managers and admins can change the rota")


def _validate_times(draft: ShiftDraft) -> None:
    if draft.end_time <= draft.start_time:
        raise ValidationError("Shift end time must be after start time")


class RotaService:
    """Weekly rota per (location, department).

    Employees only ever see published weeks, and only their own shifts.
    Mutations of one (week, scope) run under that key's lock.
    """

    def __init__(
        self,
        rota: RotaRepository,
        workers: WorkerDirectory,
        notifier: NotificationPort,
        audit: AuditLogger,
        *,
        clock: Clock | None = None,
        locks: KeyedLock | None = None,
    ):
        self._rota = rota
        self._workers = workers
        self._notifier = notifier
        self._audit = audit
        self._clock = clock or SystemClock()
        self._locks = locks or KeyedLock()

    def _week_lock(self, week_start: date, scope: Scope):
        return self._locks.hold((week_start, scope))

    def get_week(self, principal: Principal, week_start: date, scope: Scope | None = None) -> RotaWeek:
        scope = resolve_scope(principal, scope)
        week_start = week_start_for(week_start)
        week = self._rota.get_week(week_start, scope)
        if week is None or (not week.published and not principal.is_privileged):
            return RotaWeek.draft(week_start, scope)
        return week

    def publish(
        self,
        principal: Principal,
        week_start: date,
        scope: Scope | None = None,
        *,
        notify: bool = True,
    ) -> RotaWeek:
        """Publish the week. With ``notify`` every assigned worker gets their shift list.

        A failed notification does not undo the publication; it is raised
        as NotificationUnavailableError after the week is saved.
        """
        _require_privileged(principal)
        scope = resolve_scope(principal, scope)
        week_start = week_start_for(week_start)

        with self._week_lock(week_start, scope):
            week = self._rota.save_week(
                RotaWeek(
                    week_start=week_start,
                    scope=scope,
                    published=True,
                    published_at=self._clock.now(),
                    published_by=principal.worker_id,
                )
            )

        logger.info("Rota %s for %s published by %s", week_start, scope, principal.worker_id)
        self._audit.record(
            actor_id=principal.worker_id,
            action=AuditAction.ROTA_PUBLISHED,
            entity_type="rota_week",
            entity_id=week_start.isoformat(),
            metadata={"location": scope.location, "department": scope.department},
        )

        if notify:
            self._send_publish_notifications(week_start, scope)
        return week

    def unpublish(self, principal: Principal, week_start: date, scope: Scope | None = None) -> RotaWeek:
        _require_privileged(principal)
        scope = resolve_scope(principal, scope)
        week_start = week_start_for(week_start)

        with self._week_lock(week_start, scope):
            current = self._rota.get_week(week_start, scope) or RotaWeek.draft(week_start, scope)
            week = self._rota.save_week(
                RotaWeek(
                    week_start=week_start,
                    scope=scope,
                    published=False,
                    published_at=current.published_at,
                    published_by=current.published_by,
                )
            )

        logger.info("Rota %s for %s unpublished by %s", week_start, scope, principal.worker_id)
        self._audit.record(
            actor_id=principal.worker_id,
            action=AuditAction.ROTA_UNPUBLISHED,
            entity_type="rota_week",
            entity_id=week_start.isoformat(),
            metadata={"location": scope.location, "department": scope.department},
        )
        return week

    def notify_week(self, principal: Principal, week_start: date, scope: Scope | None = None) -> int:
        _require_privileged(principal)
        scope = resolve_scope(principal, scope)
        week_start = week_start_for(week_start)

        sent = self._send_publish_notifications(week_start, scope)
        self._audit.record(
            actor_id=principal.worker_id,
            action=AuditAction.ROTA_NOTIFY_SENT,
            entity_type="rota_week",
            entity_id=week_start.isoformat(),
            metadata={"location": scope.location, "department": scope.department, "sent": sent},
        )
        return sent

    def get_shift(self, principal: Principal, shift_id: int) -> RotaShift:
        shift = self._rota.get_shift(shift_id)
        if shift is None or shift not in self._visible(principal, [shift]):
            raise NotFoundError(f"Shift {shift_id} not found")
        return shift

    def upsert_shift(self, principal: Principal, draft: ShiftDraft, *, shift_id: int | None = None) -> RotaShift:
        """Create a shift, or replace the editable fields of ``shift_id``.

        An update keeps the shift's scope unless the draft names another one.
        """
        _require_privileged(principal)
        _validate_times(draft)
        week_start = week_start_for(draft.work_date)
        now = self._clock.now()

        if shift_id is None:
            scope = resolve_scope(principal, draft.scope)
            with self._week_lock(week_start, scope):
                shift = self._rota.create_shift(
                    week_start=week_start,
                    scope=scope,
                    work_date=draft.work_date,
                    start_time=draft.start_time,
                    end_time=draft.end_time,
                    role=draft.role,
                    notes=draft.notes,
                    assigned_worker_id=draft.assigned_worker_id,
                    created_by=principal.worker_id,
                    updated_at=now,
                )
            action = AuditAction.ROTA_SHIFT_CREATED
        else:
            existing = self._rota.get_shift(shift_id)
            if existing is None:
                raise NotFoundError(f"Shift {shift_id} not found")
            scope = resolve_scope(principal, draft.scope or existing.scope)
            with self._week_lock(week_start, scope):
                shift = self._rota.update_shift(
                    RotaShift(
                        shift_id=shift_id,
                        week_start=week_start,
                        scope=scope,
                        work_date=draft.work_date,
                        start_time=draft.start_time,
                        end_time=draft.end_time,
                        role=draft.role,
                        notes=draft.notes,
                        assigned_worker_id=draft.assigned_worker_id,
                        created_by=existing.created_by,
                        updated_at=now,
                    )
                )
            if shift is None:
                raise NotFoundError(f"Shift {shift_id} not found")
            action = AuditAction.ROTA_SHIFT_UPDATED

        logger.info("Shift %s %s in %s", shift.shift_id, "created" if shift_id is None else "updated", scope)
        self._audit.record(
            actor_id=principal.worker_id,
            action=action,
            entity_type="rota_shift",
            entity_id=shift.shift_id,
        )
        return shift

    def delete_shift(self, principal: Principal, shift_id: int) -> None:
        _require_privileged(principal)
        shift = self._rota.get_shift(shift_id)
        if shift is None:
            raise NotFoundError(f"Shift {shift_id} not found")
        with self._week_lock(shift.week_start, shift.scope):
            deleted = self._rota.delete_shift(shift_id)
        if not deleted:
            raise NotFoundError(f"Shift {shift_id} not found")

        logger.info("Shift %s deleted from %s", shift_id, shift.scope)
        self._audit.record(
            actor_id=principal.worker_id,
            action=AuditAction.ROTA_SHIFT_DELETED,
            entity_type="rota_shift",
            entity_id=shift_id,
        )

    def copy_shift(
        self,
        principal: Principal,
        shift_id: int,
        new_date: date,
        scope: Scope | None = None,
        *,
        assigned_worker_id: int | None = None,
    ) -> RotaShift:
        """Duplicate times, role and notes onto ``new_date`` as a new shift.

        The copy starts unassigned unless ``assigned_worker_id`` is given.
        """
        _require_privileged(principal)
        source = self._rota.get_shift(shift_id)
        if source is None:
            raise NotFoundError(f"Shift {shift_id} not found")

        target_scope = resolve_scope(principal, scope or source.scope)
        week_start = week_start_for(new_date)
        with self._week_lock(week_start, target_scope):
            copy = self._rota.create_shift(
                week_start=week_start,
                scope=target_scope,
                work_date=new_date,
                start_time=source.start_time,
                end_time=source.end_time,
                role=source.role,
                notes=source.notes,
                assigned_worker_id=assigned_worker_id,
                created_by=principal.worker_id,
                updated_at=self._clock.now(),
            )

        logger.info("Shift %s copied to %s as %s", shift_id, new_date, copy.shift_id)
        self._audit.record(
            actor_id=principal.worker_id,
            action=AuditAction.ROTA_SHIFT_COPIED,
            entity_type="rota_shift",
            entity_id=copy.shift_id,
            metadata={"from": shift_id},
        )
        return copy

    def list_shifts(self, principal: Principal, week_start: date, scope: Scope | None = None) -> list[RotaShift]:
        scope = resolve_scope(principal, scope)
        week_start = week_start_for(week_start)
        week = self._rota.get_week(week_start, scope)
        published = week is not None and week.published

        if principal.role is Role.ADMIN or principal.role is Role.MANAGER:
            return list(self._rota.list_shifts(week_start, scope))
        if principal.role is Role.EMPLOYEE:
            if not published:
                return []
            return list(self._rota.list_shifts(week_start, scope, assigned_worker_id=principal.worker_id))
        raise ValueError(f"Unhandled role: {principal.role!r}")

    def copy_week(
        self,
        principal: Principal,
        from_week: date,
        to_week: date,
        scope: Scope | None = None,
        *,
        include_assignments: bool = False,
        overwrite: bool = False,
        repeat_weeks: int = 1,
    ) -> list[RotaShift]:
        """Replicate a week's shifts onto ``to_week`` (and the following weeks).

        Day offsets within the week are preserved. ``overwrite`` clears each
        target week first.
        """
        _require_privileged(principal)
        scope = resolve_scope(principal, scope)
        from_week = week_start_for(from_week)
        to_week = week_start_for(to_week)
        repeat_weeks = max(1, int(repeat_weeks or 1))

        source = list(self._rota.list_shifts(from_week, scope))
        now = self._clock.now()
        created: list[RotaShift] = []
        for index in range(repeat_weeks):
            target = to_week + timedelta(weeks=index)
            with self._week_lock(target, scope):
                if overwrite:
                    self._rota.delete_week_shifts(target, scope)
                for shift in source:
                    created.append(
                        self._rota.create_shift(
                            week_start=target,
                            scope=scope,
                            work_date=target + (shift.work_date - from_week),
                            start_time=shift.start_time,
                            end_time=shift.end_time,
                            role=shift.role,
                            notes=shift.notes,
                            assigned_worker_id=shift.assigned_worker_id if include_assignments else None,
                            created_by=principal.worker_id,
                            updated_at=now,
                        )
                    )

        logger.info("Copied %d shifts from %s to %s (x%d) in %s", len(source), from_week, to_week, repeat_weeks, scope)
        self._audit.record(
            actor_id=principal.worker_id,
            action=AuditAction.ROTA_WEEK_COPIED,
            entity_type="rota_week",
            entity_id=from_week.isoformat(),
            metadata={"to_week": to_week.isoformat(), "repeat_weeks": repeat_weeks},
        )
        return created

    def send_reminders_for_date(
        self,
        principal: Principal,
        work_date: date,
        kind: ReminderKind,
        scope: Scope | None = None,
    ) -> int:
        """Operator-triggered reminder to every assigned worker of a day.

        Bypasses the reminder ledger, so workers may get a second email.
        """
        _require_privileged(principal)
        scope = resolve_scope(principal, scope)
        shifts = self._rota.list_assigned_shifts_on(work_date, scope)
        return self._notify_workers(
            shifts,
            subject=reminder_subject(kind),
            body=lambda rows: day_reminder_body(kind, work_date, rows),
        )

    def assigned_shifts_on(self, work_date: date) -> list[tuple[RotaShift, bool]]:
        """Every assigned shift of ``work_date`` with its week's publication flag."""
        weeks: dict[tuple[date, Scope], bool] = {}
        result: list[tuple[RotaShift, bool]] = []
        for shift in self._rota.list_assigned_shifts_on(work_date):
            key = (shift.week_start, shift.scope)
            if key not in weeks:
                week = self._rota.get_week(shift.week_start, shift.scope)
                weeks[key] = week is not None and week.published
            result.append((shift, weeks[key]))
        return result

    def _visible(self, principal: Principal, shifts: Iterable[RotaShift]) -> list[RotaShift]:
        if principal.is_privileged:
            return list(shifts)
        visible = []
        for shift in shifts:
            if shift.assigned_worker_id != principal.worker_id:
                continue
            week = self._rota.get_week(shift.week_start, shift.scope)
            if week is not None and week.published:
                visible.append(shift)
        return visible

    def _send_publish_notifications(self, week_start: date, scope: Scope) -> int:
        shifts = [s for s in self._rota.list_shifts(week_start, scope) if s.assigned_worker_id is not None]
        return self._notify_workers(
            shifts,
            subject=PUBLISH_SUBJECT,
            body=lambda rows: publish_body(week_start, rows),
        )

    def _notify_workers(self, shifts: Iterable[RotaShift], *, subject: str, body) -> int:
        by_worker: dict[int, list[RotaShift]] = defaultdict(list)
        for shift in shifts:
            by_worker[int(shift.assigned_worker_id)].append(shift)

        sent = 0
        failures: list[str] = []
        for worker_id, rows in sorted(by_worker.items()):
            contact = self._workers.get_contact(worker_id)
            if contact is None or not contact.email:
                logger.warning("No email address for worker %s; skipping %r", worker_id, subject)
                continue
            text = body([(s.work_date, s.start_time, s.end_time) for s in rows])
            try:
                self._notifier.send(contact.email, subject, text)
            except NotificationUnavailableError as ex:
                logger.warning("Could not send %r to worker %s: %s", subject, worker_id, ex)
                failures.append(str(worker_id))
                continue
            sent += 1

        if failures:
            raise NotificationUnavailableError(
                f"Failed to notify {len(failures)} of {len(by_worker)} workers: {', '.join(failures)}"
            )
        return sent
