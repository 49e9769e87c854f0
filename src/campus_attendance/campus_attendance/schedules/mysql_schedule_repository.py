from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import DeliveryMode
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import ScheduledSession
from .repository import ScheduleRepository

_COLUMNS = """
    schedule_id, course_code, lecturer_id, class_group_id, day_of_week,
    start_time, end_time, mode, location, meeting_link
"""


def _row_to_session(r: dict) -> ScheduledSession:
    return ScheduledSession(
        schedule_id=int(r["schedule_id"]),
        course_code=str(r["course_code"]),
        lecturer_id=int(r["lecturer_id"]),
        class_group_id=int(r["class_group_id"]),
        day_of_week=int(r["day_of_week"]),
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        mode=DeliveryMode(r["mode"]),
        location=r.get("location"),
        meeting_link=r.get("meeting_link"),
    )


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, schedule_id: int) -> Optional[ScheduledSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM schedules WHERE schedule_id=%s", (int(schedule_id),))
            r = fetchone(cur)
            return _row_to_session(r) if r else None

    def list_for_lecturer(self, lecturer_id: int) -> Sequence[ScheduledSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM schedules
                WHERE lecturer_id=%s
                ORDER BY day_of_week ASC, start_time ASC
                """,
                (int(lecturer_id),),
            )
            return [_row_to_session(r) for r in fetchall(cur)]
