from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .attendance.memory_repository import InMemoryEntryRepository
from .attendance.mysql_entry_repository import MySQLEntryRepository
from .attendance.repository import EntryRepository
from .attendance.service import AttendanceService
from .audit.memory_repository import InMemoryAuditSink
from .audit.mysql_audit_repository import MySQLAuditSink
from .audit.repository import AuditSink
from .audit.service import AuditLogger
from .common.clock import Clock, SystemClock
from .compliance.service import ComplianceService
from .database.connection import DBConfig, DatabaseConnection
from .notifications.port import NotificationPort
from .notifications.smtp_notifier import SmtpNotifier
from .reminders.memory_repository import InMemoryReminderLedger
from .reminders.mysql_reminder_repository import MySQLReminderLedger
from .reminders.repository import ReminderLedger
from .reminders.scheduler import RecurringTask
from .reminders.service import ReminderScheduler
from .rota.memory_repository import InMemoryRotaRepository
from .rota.mysql_rota_repository import MySQLRotaRepository
from .rota.repository import RotaRepository
from .rota.service import RotaService
from .settings.provider import InMemorySettingsProvider
from .users.memory_repository import InMemoryWorkerDirectory
from .users.mysql_user_repository import MySQLWorkerDirectory
from .users.repository import WorkerDirectory

STORAGE_MEMORY = "memory"
STORAGE_MYSQL = "mysql"


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    clock: Clock
    settings: InMemorySettingsProvider

    entries_repo: EntryRepository
    rota_repo: RotaRepository
    reminder_ledger: ReminderLedger
    audit_sink: AuditSink
    workers: WorkerDirectory
    notifier: NotificationPort

    audit_logger: AuditLogger
    compliance_service: ComplianceService
    attendance_service: AttendanceService
    rota_service: RotaService
    reminder_scheduler: ReminderScheduler
    reminder_task: RecurringTask


def build_container(
    *,
    db_config: Optional[Mapping[str, Any]] = None,
    storage: str = STORAGE_MYSQL,
    settings: Optional[InMemorySettingsProvider] = None,
    clock: Optional[Clock] = None,
    notifier: Optional[NotificationPort] = None,
    workers: Optional[WorkerDirectory] = None,
) -> Container:
    clock = clock or SystemClock()
    settings = settings or InMemorySettingsProvider()

    conn: Optional[DatabaseConnection] = None
    if storage == STORAGE_MYSQL:
        if db_config is None:
            raise ValueError("db_config is required for the mysql storage backend")
        conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
        entries_repo: EntryRepository = MySQLEntryRepository(conn)
        rota_repo: RotaRepository = MySQLRotaRepository(conn)
        reminder_ledger: ReminderLedger = MySQLReminderLedger(conn)
        audit_sink: AuditSink = MySQLAuditSink(conn)
        workers = workers or MySQLWorkerDirectory(conn)
    elif storage == STORAGE_MEMORY:
        entries_repo = InMemoryEntryRepository()
        rota_repo = InMemoryRotaRepository()
        reminder_ledger = InMemoryReminderLedger()
        audit_sink = InMemoryAuditSink()
        workers = workers or InMemoryWorkerDirectory()
    else:
        raise ValueError(f"Unknown storage backend: {storage!r}")

    notifier = notifier or SmtpNotifier(settings)

    audit_logger = AuditLogger(audit_sink, clock)
    compliance_service = ComplianceService(settings)
    attendance_service = AttendanceService(entries_repo, compliance_service, audit_logger, clock=clock)
    rota_service = RotaService(rota_repo, workers, notifier, audit_logger, clock=clock)
    reminder_scheduler = ReminderScheduler(
        rota_service,
        reminder_ledger,
        notifier,
        workers,
        settings,
        audit_logger,
        clock=clock,
    )
    reminder_task = RecurringTask(
        reminder_scheduler.tick,
        lambda: settings.get_scheduler_config().poll_interval_minutes * 60,
        name="ReminderScheduler",
    )

    return Container(
        conn=conn,
        clock=clock,
        settings=settings,
        entries_repo=entries_repo,
        rota_repo=rota_repo,
        reminder_ledger=reminder_ledger,
        audit_sink=audit_sink,
        workers=workers,
        notifier=notifier,
        audit_logger=audit_logger,
        compliance_service=compliance_service,
        attendance_service=attendance_service,
        rota_service=rota_service,
        reminder_scheduler=reminder_scheduler,
        reminder_task=reminder_task,
    )
