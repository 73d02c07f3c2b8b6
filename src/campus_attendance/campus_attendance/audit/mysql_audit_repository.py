from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import AuditAction
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_json, to_json
from .model import AuditEntry
from .repository import AuditRepository


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, entry: AuditEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(actor_id, action, target_table, target_id, success, details, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry.actor_id,
                    entry.action.value,
                    entry.target_table,
                    entry.target_id,
                    1 if entry.success else 0,
                    to_json(entry.details),
                    entry.created_at,
                ),
            )
            return int(cur.lastrowid)

    def list_recent(self, *, limit: int, actor_id: Optional[int] = None) -> Sequence[AuditEntry]:
        clauses = ["1=1"]
        params: list[object] = []
        if actor_id is not None:
            clauses.append("actor_id=%s")
            params.append(int(actor_id))
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT audit_id, actor_id, action, target_table, target_id, success, details, created_at
                FROM audit_logs
                WHERE {" AND ".join(clauses)}
                ORDER BY created_at DESC, audit_id DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [
                AuditEntry(
                    audit_id=int(r["audit_id"]),
                    actor_id=r.get("actor_id"),
                    action=AuditAction(r["action"]),
                    target_table=r["target_table"],
                    target_id=r.get("target_id"),
                    success=bool(r["success"]),
                    details=from_json(r.get("details")),
                    created_at=r["created_at"],
                )
                for r in fetchall(cur)
            ]
