from __future__ import annotations

import json
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AuditLogEntry, AuditQuery, NewAuditLogEntry
from .repository import AuditRepository

_COLUMNS = "entry_id, actor_id, actor_role, action, target_type, target_id, metadata, risk_score, data_hash, created_at"


def _row_to_entry(r: dict) -> AuditLogEntry:
    raw = r.get("metadata")
    return AuditLogEntry(
        entry_id=int(r["entry_id"]),
        actor_id=int(r["actor_id"]),
        actor_role=str(r["actor_role"]),
        action=str(r["action"]),
        target_type=str(r["target_type"]),
        target_id=int(r["target_id"]),
        metadata=json.loads(raw) if raw else {},
        risk_score=int(r["risk_score"]),
        data_hash=str(r["data_hash"]),
        created_at=r["created_at"],
    )


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, entry: NewAuditLogEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(
                    actor_id, actor_role, action, target_type, target_id,
                    metadata, risk_score, data_hash, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(entry.actor_id),
                    entry.actor_role,
                    entry.action,
                    entry.target_type,
                    int(entry.target_id),
                    json.dumps(entry.metadata, sort_keys=True, default=str),
                    int(entry.risk_score),
                    entry.data_hash,
                    entry.created_at,
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, entry_id: int) -> Optional[AuditLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM audit_logs WHERE entry_id=%s", (int(entry_id),))
            r = fetchone(cur)
            return _row_to_entry(r) if r else None

    def list(self, query: AuditQuery) -> Sequence[AuditLogEntry]:
        clauses: list[str] = []
        params: list[object] = []
        if query.actor_id is not None:
            clauses.append("actor_id=%s")
            params.append(int(query.actor_id))
        if query.action:
            clauses.append("action=%s")
            params.append(query.action)
        if query.target_type:
            clauses.append("target_type=%s")
            params.append(query.target_type)
        if query.target_id is not None:
            clauses.append("target_id=%s")
            params.append(int(query.target_id))
        if query.min_risk is not None:
            clauses.append("risk_score>=%s")
            params.append(int(query.min_risk))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.append(int(query.limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM audit_logs
                {where}
                ORDER BY created_at DESC, entry_id DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_row_to_entry(r) for r in fetchall(cur)]
