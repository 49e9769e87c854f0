from __future__ import annotations

import json
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..attendance.model import VerificationState
from ..attendance.mysql_attendance_repository import decision_params
from ..core.enums import RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import NewVerificationRequest, RequestResolution, VerificationRequest
from .repository import VerificationRequestRepository

_COLUMNS = """
    vr.request_id, vr.record_id, vr.requester_id, vr.status, vr.notes, vr.evidence,
    vr.review_notes, vr.reviewed_by, vr.created_at, vr.reviewed_at, vr.escalated_at
"""


def _row_to_request(r: dict) -> VerificationRequest:
    raw = r.get("evidence")
    return VerificationRequest(
        request_id=int(r["request_id"]),
        record_id=int(r["record_id"]),
        requester_id=int(r["requester_id"]),
        status=RequestStatus(r["status"]),
        notes=r.get("notes"),
        evidence=tuple(json.loads(raw)) if raw else (),
        review_notes=r.get("review_notes"),
        reviewed_by=int(r["reviewed_by"]) if r.get("reviewed_by") is not None else None,
        created_at=r["created_at"],
        reviewed_at=r.get("reviewed_at"),
        escalated_at=r.get("escalated_at"),
    )


class MySQLVerificationRequestRepository(VerificationRequestRepository):
    """Uses the ``open_record_id`` generated column (unique) for one open request per record."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, request_id: int) -> Optional[VerificationRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM verification_requests vr WHERE vr.request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def find_open_for_record(self, record_id: int) -> Optional[VerificationRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM verification_requests vr WHERE vr.open_record_id=%s",
                (int(record_id),),
            )
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def create_if_none_open(self, request: NewVerificationRequest) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO verification_requests(record_id, requester_id, status, notes, evidence, created_at)
                    VALUES(%s,%s,'pending',%s,%s,%s)
                    """,
                    (
                        int(request.record_id),
                        int(request.requester_id),
                        request.notes,
                        json.dumps(list(request.evidence)),
                        request.created_at,
                    ),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                return None
            raise

    def resolve_if_pending(
        self,
        resolution: RequestResolution,
        *,
        supervisor_state: Optional[VerificationState] = None,
    ) -> bool:
        # One transaction: db_cursor rolls back the request update if the record update fails.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE verification_requests
                SET status=%s, review_notes=%s, reviewed_by=%s, reviewed_at=%s, escalated_at=%s
                WHERE request_id=%s AND status='pending'
                """,
                (
                    resolution.status.value,
                    resolution.review_notes,
                    int(resolution.reviewed_by),
                    resolution.reviewed_at,
                    resolution.escalated_at,
                    int(resolution.request_id),
                ),
            )
            if cur.rowcount == 0:
                return False
            if supervisor_state is not None:
                cur.execute(
                    """
                    UPDATE attendance_records ar
                    JOIN verification_requests vr ON vr.record_id = ar.record_id
                    SET ar.supervisor_verified=%s, ar.supervisor_comment=%s,
                        ar.supervisor_verified_by=%s, ar.supervisor_verified_at=%s
                    WHERE vr.request_id=%s
                    """,
                    (*decision_params(supervisor_state), int(resolution.request_id)),
                )
            return True

    def list_requests(
        self,
        *,
        status: Optional[RequestStatus] = None,
        requester_id: Optional[int] = None,
        record_lecturer_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[VerificationRequest]:
        clauses: list[str] = []
        params: list[object] = []
        if status is not None:
            clauses.append("vr.status=%s")
            params.append(status.value)
        if requester_id is not None:
            clauses.append("vr.requester_id=%s")
            params.append(int(requester_id))
        if record_lecturer_id is not None:
            clauses.append("ar.lecturer_id=%s")
            params.append(int(record_lecturer_id))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM verification_requests vr
                JOIN attendance_records ar ON ar.record_id = vr.record_id
                {where}
                ORDER BY vr.created_at DESC, vr.request_id DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_row_to_request(r) for r in fetchall(cur)]
