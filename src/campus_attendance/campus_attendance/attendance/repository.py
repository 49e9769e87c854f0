from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol

from .model import AttendanceRecord, NewAttendanceRecord, VerificationState


class AttendanceRepository(Protocol):
    """Storage for attendance records.

    The ``*_if_*`` writes are conditional and atomic: they return False when
    the guarded condition no longer holds, and never overwrite a decision.
    """

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_capture_key(self, *, lecturer_id: int, schedule_id: int, session_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_if_absent(self, record: NewAttendanceRecord) -> Optional[int]:
        """Insert unless a record already exists for (lecturer, schedule, day).

        Returns the new record_id, or None when the key is taken.
        """

        raise NotImplementedError

    def end_virtual_session_if_open(self, *, record_id: int, session_end: datetime, duration_met: bool) -> bool:
        raise NotImplementedError

    def decide_class_rep_if_pending(self, *, record_id: int, state: VerificationState) -> bool:
        raise NotImplementedError

    def decide_supervisor_if_pending(self, *, record_id: int, state: VerificationState) -> bool:
        raise NotImplementedError
