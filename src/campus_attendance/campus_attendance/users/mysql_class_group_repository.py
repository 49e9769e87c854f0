from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .repository import ClassGroupRepository


class MySQLClassGroupRepository(ClassGroupRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_groups_represented_by(self, user_id: int) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT class_group_id
                FROM class_group_reps
                WHERE user_id=%s
                ORDER BY class_group_id
                """,
                (int(user_id),),
            )
            return [int(r["class_group_id"]) for r in fetchall(cur)]

    def is_class_rep(self, *, user_id: int, class_group_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS ok
                FROM class_group_reps
                WHERE user_id=%s AND class_group_id=%s
                """,
                (int(user_id), int(class_group_id)),
            )
            return fetchone(cur) is not None
