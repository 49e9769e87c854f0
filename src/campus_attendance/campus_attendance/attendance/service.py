from __future__ import annotations

import logging
from contextlib import nullcontext
from datetime import datetime, timedelta
from typing import Any, Optional

from ..audit.service import AuditTrail, audit_transition
from ..common.datetime_utils import now_local
from ..common.locks import KeyedLock
from ..common.validators import coerce_enum, optional_text, require_positive_id
from ..core.enums import AuditAction, CaptureMethod, Decision, DeliveryMode, VirtualAction
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..permissions.engine import AccessFacts, PermissionEngine
from ..permissions.policy import Capability
from ..schedules.model import ScheduledSession
from ..schedules.repository import ScheduleRepository
from ..users.model import Actor
from ..users.repository import ClassGroupRepository
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, ClientInfo, NewAttendanceRecord, decided, is_pending
from .repository import AttendanceRepository
from .strategies.base import CaptureRequest

logger = logging.getLogger(__name__)

TARGET_TYPE = "attendance_record"


class AttendanceService:
    """Capture and the two independent verification channels.

    Every transition goes: permission check -> verifier -> conditional write ->
    exactly one audit entry. Rejected attempts mutate nothing.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        schedules: ScheduleRepository,
        class_groups: ClassGroupRepository,
        audit: AuditTrail,
        *,
        strategy_factory: AttendanceStrategyFactory,
        permissions: Optional[PermissionEngine] = None,
        locks: Optional[KeyedLock] = None,
    ):
        self._attendance = attendance
        self._schedules = schedules
        self._class_groups = class_groups
        self._audit = audit
        self._factory = strategy_factory
        self._permissions = permissions or PermissionEngine()
        self._locks = locks

    def _guard(self, key):
        return self._locks.hold(key) if self._locks else nullcontext()

    def _require_schedule(self, schedule_id: int) -> ScheduledSession:
        schedule = self._schedules.get_by_id(require_positive_id(schedule_id, "schedule_id"))
        if not schedule:
            raise NotFoundError("Schedule not found")
        return schedule

    def _require_record(self, record_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(require_positive_id(record_id, "record_id"))
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def _facts(self, actor: Actor, record: AttendanceRecord) -> AccessFacts:
        is_member = self._class_groups.is_class_rep(user_id=actor.user_id, class_group_id=record.class_group_id)
        return AccessFacts(is_owner=record.lecturer_id == actor.user_id, is_class_member=is_member)

    # ---- capture ----

    def capture_attendance(
        self,
        actor: Actor,
        schedule_id: int,
        method: CaptureMethod | str,
        *,
        coordinates: Optional[tuple[Any, Any]] = None,
        virtual_action: VirtualAction | str | None = None,
        client: Optional[ClientInfo] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        method = coerce_enum(CaptureMethod, method, "method")
        schedule = self._require_schedule(schedule_id)

        self._permissions.require(
            actor.role,
            Capability.ATTENDANCE_CREATE,
            AccessFacts(is_owner=schedule.lecturer_id == actor.user_id),
        )

        if method == CaptureMethod.ONSITE and schedule.mode != DeliveryMode.ONSITE:
            raise ValidationError("This session is scheduled as virtual; onsite capture is not allowed")
        if method == CaptureMethod.VIRTUAL and schedule.mode != DeliveryMode.VIRTUAL:
            raise ValidationError("This session is scheduled as onsite; virtual capture is not allowed")

        action = None
        if method == CaptureMethod.VIRTUAL:
            action = coerce_enum(VirtualAction, virtual_action or VirtualAction.START, "virtual_action")

        session_date = now.date()
        key = (actor.user_id, schedule.schedule_id, session_date)
        with self._guard(key):
            if action == VirtualAction.END:
                return self._end_virtual_session(actor, schedule, now)

            existing = self._attendance.get_for_capture_key(
                lecturer_id=actor.user_id,
                schedule_id=schedule.schedule_id,
                session_date=session_date,
            )
            if existing:
                raise ConflictError("Attendance already recorded for this session today")

            strategy = self._factory.for_method(method)
            decision = strategy.decide_start(
                CaptureRequest(
                    schedule=schedule,
                    session_date=session_date,
                    now=now,
                    client=client or ClientInfo(),
                    coordinates=coordinates,
                )
            )

            record_id = self._attendance.create_if_absent(
                NewAttendanceRecord(
                    schedule_id=schedule.schedule_id,
                    lecturer_id=actor.user_id,
                    class_group_id=schedule.class_group_id,
                    session_date=session_date,
                    captured_at=now,
                    method=method,
                    geofence=decision.geofence,
                    virtual=decision.virtual,
                )
            )
            if record_id is None:
                raise ConflictError("Attendance already recorded for this session today")

        metadata: dict = {"schedule_id": schedule.schedule_id, "method": method.value}
        if decision.geofence:
            metadata["distance_meters"] = round(decision.geofence.distance_meters)
        if decision.virtual:
            metadata["device_fingerprint"] = decision.virtual.device_fingerprint
        audit_transition(self._audit, actor, AuditAction.ATTENDANCE_RECORDED, TARGET_TYPE, record_id, metadata, now=now)

        logger.info("Attendance %s captured (%s) for schedule %s", record_id, method.value, schedule.schedule_id)
        return self._require_record(record_id)

    def _find_virtual_session(self, actor: Actor, schedule: ScheduledSession, now: datetime) -> AttendanceRecord:
        """Today's virtual record, or yesterday's when the session runs past midnight."""

        today = now.date()
        for session_date in (today, today - timedelta(days=1)):
            record = self._attendance.get_for_capture_key(
                lecturer_id=actor.user_id,
                schedule_id=schedule.schedule_id,
                session_date=session_date,
            )
            if not record or record.virtual is None:
                continue
            if record.virtual.session_end is None:
                return record
            if session_date == today or record.virtual.session_end.date() == today:
                raise ConflictError("Virtual session already ended")
        raise NotFoundError("No active virtual session found")

    def _end_virtual_session(self, actor: Actor, schedule: ScheduledSession, now: datetime) -> AttendanceRecord:
        record = self._find_virtual_session(actor, schedule, now)

        outcome = self._factory.for_method(CaptureMethod.VIRTUAL).decide_end(record=record, schedule=schedule, now=now)
        if not self._attendance.end_virtual_session_if_open(
            record_id=record.record_id,
            session_end=now,
            duration_met=outcome.duration_met,
        ):
            raise ConflictError("Virtual session already ended")

        audit_transition(
            self._audit,
            actor,
            AuditAction.ATTENDANCE_SESSION_ENDED,
            TARGET_TYPE,
            record.record_id,
            {
                "schedule_id": schedule.schedule_id,
                "duration_met": outcome.duration_met,
                "overlap_minutes": round(outcome.overlap_minutes),
                "required_minutes": round(outcome.required_minutes),
            },
            now=now,
        )
        return self._require_record(record.record_id)

    # ---- verification channels ----

    def decide_class_rep_verification(
        self,
        actor: Actor,
        record_id: int,
        decision: Decision | str,
        comment: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        record = self._require_record(record_id)
        self._permissions.require(actor.role, Capability.ATTENDANCE_VERIFY, self._facts(actor, record))
        decision = coerce_enum(Decision, decision, "decision")

        if not is_pending(record.class_rep):
            raise ConflictError("Attendance already verified by class rep")

        state = decided(decision, comment=optional_text(comment), decided_by=actor.user_id, decided_at=now)
        with self._guard(("class_rep", record.record_id)):
            if not self._attendance.decide_class_rep_if_pending(record_id=record.record_id, state=state):
                raise ConflictError("Attendance already verified by class rep")

        self._audit_decision(actor, record.record_id, decision, "class_rep", now)
        return self._require_record(record.record_id)

    def decide_supervisor_verification(
        self,
        actor: Actor,
        record_id: int,
        decision: Decision | str,
        comment: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        record = self._require_record(record_id)
        self._permissions.require(actor.role, Capability.ATTENDANCE_SUPERVISE, self._facts(actor, record))
        decision = coerce_enum(Decision, decision, "decision")

        if not is_pending(record.supervisor):
            raise ConflictError("Attendance already verified by supervisor")

        state = decided(decision, comment=optional_text(comment), decided_by=actor.user_id, decided_at=now)
        with self._guard(("supervisor", record.record_id)):
            if not self._attendance.decide_supervisor_if_pending(record_id=record.record_id, state=state):
                raise ConflictError("Attendance already verified by supervisor")

        self._audit_decision(actor, record.record_id, decision, "supervisor", now)
        return self._require_record(record.record_id)

    def _audit_decision(self, actor: Actor, record_id: int, decision: Decision, channel: str, now: datetime) -> None:
        action = AuditAction.ATTENDANCE_VERIFIED if decision == Decision.VERIFIED else AuditAction.ATTENDANCE_DISPUTED
        audit_transition(self._audit, actor, action, TARGET_TYPE, record_id, {"channel": channel}, now=now)
        logger.info("Attendance %s %s by %s %s", record_id, decision.value, channel, actor.user_id)

    def get_record(self, actor: Actor, record_id: int) -> AttendanceRecord:
        record = self._require_record(record_id)
        self._permissions.require(actor.role, Capability.ATTENDANCE_READ, self._facts(actor, record))
        return record
