from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import WorkerContact
from .repository import WorkerDirectory


class MySQLWorkerDirectory(WorkerDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_contact(self, worker_id: int) -> Optional[WorkerContact]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, email, full_name
                FROM users
                WHERE user_id=%s AND is_active=1
                """,
                (int(worker_id),),
            )
            row = fetchone(cur)
            if not row or not row.get("email"):
                return None
            return WorkerContact(
                worker_id=int(row["user_id"]),
                email=row["email"],
                full_name=row.get("full_name"),
            )
