from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, load_json
from .model import AuditAction, AuditRecord
from .repository import AuditSink


class MySQLAuditSink(AuditSink):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def write(self, record: AuditRecord) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_log(actor_id, action, entity_type, entity_id, meta, created_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    record.actor_id,
                    record.action.value,
                    record.entity_type,
                    record.entity_id,
                    dump_json(record.metadata),
                    record.timestamp,
                ),
            )

    def list_recent(self, limit: int) -> Sequence[AuditRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT actor_id, action, entity_type, entity_id, meta, created_at
                FROM audit_log
                ORDER BY created_at DESC, audit_id DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [
                AuditRecord(
                    actor_id=r.get("actor_id"),
                    action=AuditAction(r["action"]),
                    entity_type=r["entity_type"],
                    entity_id=r.get("entity_id"),
                    timestamp=r["created_at"],
                    metadata=load_json(r.get("meta")),
                )
                for r in fetchall(cur)
            ]
