from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from mysql.connector.errors import IntegrityError

from ..core.enums import CaptureMethod
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_optional_bool, db_cursor, fetchone, is_duplicate_key
from .model import (
    AttendanceRecord,
    GeofenceOutcome,
    NewAttendanceRecord,
    VerificationState,
    VirtualOutcome,
    from_flag,
    to_flag,
)
from .repository import AttendanceRepository

_COLUMNS = """
    record_id, schedule_id, lecturer_id, class_group_id, session_date, captured_at, method,
    location_verified, distance_meters, latitude, longitude,
    time_window_verified, meeting_link_verified, duration_met, device_fingerprint,
    ip_address, user_agent, session_start, session_end,
    class_rep_verified, class_rep_comment, class_rep_verified_by, class_rep_verified_at,
    supervisor_verified, supervisor_comment, supervisor_verified_by, supervisor_verified_at
"""


def _row_to_record(r: dict) -> AttendanceRecord:
    method = CaptureMethod(r["method"])

    geofence = None
    if method == CaptureMethod.ONSITE and r.get("location_verified") is not None:
        geofence = GeofenceOutcome(
            verified=bool(int(r["location_verified"])),
            distance_meters=float(r["distance_meters"]),
            latitude=float(r["latitude"]),
            longitude=float(r["longitude"]),
        )

    virtual = None
    if method == CaptureMethod.VIRTUAL:
        virtual = VirtualOutcome(
            time_window_verified=bool(as_optional_bool(r.get("time_window_verified"))),
            meeting_link_verified=bool(as_optional_bool(r.get("meeting_link_verified"))),
            device_fingerprint=r.get("device_fingerprint") or "",
            ip_address=r.get("ip_address") or "unknown",
            user_agent=r.get("user_agent") or "unknown",
            session_start=r.get("session_start"),
            session_end=r.get("session_end"),
            duration_met=as_optional_bool(r.get("duration_met")),
        )

    return AttendanceRecord(
        record_id=int(r["record_id"]),
        schedule_id=int(r["schedule_id"]),
        lecturer_id=int(r["lecturer_id"]),
        class_group_id=int(r["class_group_id"]),
        session_date=r["session_date"],
        captured_at=r["captured_at"],
        method=method,
        geofence=geofence,
        virtual=virtual,
        class_rep=from_flag(
            as_optional_bool(r.get("class_rep_verified")),
            comment=r.get("class_rep_comment"),
            decided_by=r.get("class_rep_verified_by"),
            decided_at=r.get("class_rep_verified_at"),
        ),
        supervisor=from_flag(
            as_optional_bool(r.get("supervisor_verified")),
            comment=r.get("supervisor_comment"),
            decided_by=r.get("supervisor_verified_by"),
            decided_at=r.get("supervisor_verified_at"),
        ),
    )


def decision_params(state: VerificationState) -> tuple:
    return (
        to_flag(state),
        getattr(state, "comment", None),
        getattr(state, "decided_by", None),
        getattr(state, "decided_at", None),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE record_id=%s", (int(record_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_capture_key(self, *, lecturer_id: int, schedule_id: int, session_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE lecturer_id=%s AND schedule_id=%s AND session_date=%s
                """,
                (int(lecturer_id), int(schedule_id), session_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def create_if_absent(self, record: NewAttendanceRecord) -> Optional[int]:
        g = record.geofence
        v = record.virtual
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        schedule_id, lecturer_id, class_group_id, session_date, captured_at, method,
                        location_verified, distance_meters, latitude, longitude,
                        time_window_verified, meeting_link_verified, device_fingerprint,
                        ip_address, user_agent, session_start
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(record.schedule_id),
                        int(record.lecturer_id),
                        int(record.class_group_id),
                        record.session_date,
                        record.captured_at,
                        record.method.value,
                        g.verified if g else None,
                        g.distance_meters if g else None,
                        g.latitude if g else None,
                        g.longitude if g else None,
                        v.time_window_verified if v else None,
                        v.meeting_link_verified if v else None,
                        v.device_fingerprint if v else None,
                        v.ip_address if v else None,
                        v.user_agent if v else None,
                        v.session_start if v else None,
                    ),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                return None
            raise

    def end_virtual_session_if_open(self, *, record_id: int, session_end: datetime, duration_met: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET session_end=%s, duration_met=%s
                WHERE record_id=%s AND method='virtual' AND session_end IS NULL
                """,
                (session_end, bool(duration_met), int(record_id)),
            )
            return cur.rowcount > 0

    def decide_class_rep_if_pending(self, *, record_id: int, state: VerificationState) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET class_rep_verified=%s, class_rep_comment=%s,
                    class_rep_verified_by=%s, class_rep_verified_at=%s
                WHERE record_id=%s AND class_rep_verified IS NULL
                """,
                (*decision_params(state), int(record_id)),
            )
            return cur.rowcount > 0

    def decide_supervisor_if_pending(self, *, record_id: int, state: VerificationState) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET supervisor_verified=%s, supervisor_comment=%s,
                    supervisor_verified_by=%s, supervisor_verified_at=%s
                WHERE record_id=%s AND supervisor_verified IS NULL
                """,
                (*decision_params(state), int(record_id)),
            )
            return cur.rowcount > 0
