from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from ..audit.model import AuditAction
from ..audit.service import AuditLogger
from ..common.clock import Clock, SystemClock
from ..core.constants import REMINDER_WINDOW_MINUTES
from ..core.enums import ReminderKind
from ..core.exceptions import NotificationUnavailableError
from ..notifications.messages import reminder_subject, shift_reminder_body
from ..notifications.port import NotificationPort
from ..rota.model import RotaShift
from ..rota.service import RotaService
from ..settings.model import SchedulerConfig
from ..settings.provider import SettingsProvider
from ..users.repository import WorkerDirectory
from .model import TickReport
from .repository import ReminderLedger

logger = logging.getLogger(__name__)

WINDOW = timedelta(minutes=REMINDER_WINDOW_MINUTES)


def scheduled_for(shift: RotaShift, kind: ReminderKind, config: SchedulerConfig) -> datetime:
    """Instant a reminder becomes due: the shift anchor minus the kind's lead."""
    if kind is ReminderKind.CHECK_IN:
        return shift.starts_at - timedelta(minutes=config.checkin_lead_minutes)
    if kind is ReminderKind.CHECK_OUT:
        return shift.ends_at - timedelta(minutes=config.checkout_lead_minutes)
    raise ValueError(f"Unhandled reminder kind: {kind!r}")


class ReminderScheduler:
    """Dispatch clock-in/clock-out reminders for today's published shifts.

    A reminder fires only while ``scheduled_for <= now <= scheduled_for + 5m``
    and only if the ledger has no record for ``(shift, kind)``. The record
    is written after a successful send, so a failed send is retried by the
    next tick still inside the window and is dropped once the window has
    passed. Delivery failures are logged, never raised.
    """

    def __init__(
        self,
        rota: RotaService,
        ledger: ReminderLedger,
        notifier: NotificationPort,
        workers: WorkerDirectory,
        settings: SettingsProvider,
        audit: AuditLogger,
        *,
        clock: Clock | None = None,
    ):
        self._rota = rota
        self._ledger = ledger
        self._notifier = notifier
        self._workers = workers
        self._settings = settings
        self._audit = audit
        self._clock = clock or SystemClock()
        # Missed reminders already warned about, reset when the day changes.
        self._missed_day: date | None = None
        self._missed: set[tuple[int, ReminderKind]] = set()

    def tick(self, now: datetime | None = None) -> TickReport:
        now = now or self._clock.now()
        config = self._settings.get_scheduler_config()
        if not config.reminders_enabled:
            logger.debug("Reminders disabled; tick at %s skipped", now)
            return TickReport(ran_at=now, enabled=False)

        today = now.date()
        if self._missed_day != today:
            self._missed_day = today
            self._missed.clear()

        sent = failed = missed = skipped = 0
        for shift, published in self._rota.assigned_shifts_on(today):
            if not published:
                skipped += 1
                continue
            for kind in (ReminderKind.CHECK_IN, ReminderKind.CHECK_OUT):
                due = scheduled_for(shift, kind, config)
                if now < due:
                    continue
                if now - due > WINDOW:
                    if self._note_missed(shift, kind, due):
                        missed += 1
                    continue
                if self._ledger.exists(shift.shift_id, kind):
                    continue
                if self._dispatch(shift, kind, due, now):
                    sent += 1
                else:
                    failed += 1

        report = TickReport(ran_at=now, sent=sent, failed=failed, missed=missed, skipped=skipped)
        if sent or failed or missed:
            logger.info(
                "Reminder tick %s: sent=%d failed=%d missed=%d skipped=%d",
                now.isoformat(timespec="seconds"),
                sent,
                failed,
                missed,
                skipped,
            )
        return report

    def _note_missed(self, shift: RotaShift, kind: ReminderKind, due: datetime) -> bool:
        key = (shift.shift_id, kind)
        if key in self._missed or self._ledger.exists(shift.shift_id, kind):
            return False
        self._missed.add(key)
        logger.warning(
            "Missed %s reminder for shift %s (worker %s): window closed at %s",
            kind.value,
            shift.shift_id,
            shift.assigned_worker_id,
            (due + WINDOW).isoformat(timespec="seconds"),
        )
        return True

    def _dispatch(self, shift: RotaShift, kind: ReminderKind, due: datetime, now: datetime) -> bool:
        contact = self._workers.get_contact(int(shift.assigned_worker_id))
        if contact is None or not contact.email:
            logger.warning("No email address for worker %s; %s reminder not sent", shift.assigned_worker_id, kind.value)
            return False

        try:
            self._notifier.send(
                contact.email,
                reminder_subject(kind),
                shift_reminder_body(kind, shift.work_date, shift.start_time, shift.end_time),
            )
        except NotificationUnavailableError as ex:
            logger.warning(
                "Failed to send %s reminder for shift %s; will retry until %s: %s",
                kind.value,
                shift.shift_id,
                (due + WINDOW).isoformat(timespec="seconds"),
                ex,
            )
            return False
        except Exception:
            logger.exception("Unexpected error sending %s reminder for shift %s", kind.value, shift.shift_id)
            return False

        record = self._ledger.record(
            shift_id=shift.shift_id,
            kind=kind,
            work_date=shift.work_date,
            scope=shift.scope,
            scheduled_for=due,
            sent_at=now,
        )
        if record is None:
            # Another process recorded the same reminder first.
            logger.warning("Reminder %s for shift %s was already recorded", kind.value, shift.shift_id)
            return True

        logger.info("Sent %s reminder for shift %s to worker %s", kind.value, shift.shift_id, shift.assigned_worker_id)
        self._audit.record(
            actor_id=None,
            action=AuditAction.REMINDER_SENT,
            entity_type="rota_shift",
            entity_id=shift.shift_id,
            metadata={"kind": kind.value, "scheduled_for": due.isoformat()},
        )
        return True
