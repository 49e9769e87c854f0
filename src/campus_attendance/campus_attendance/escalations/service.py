from __future__ import annotations

import logging
from contextlib import nullcontext
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence, Union

from ..attendance.model import AttendanceRecord, Disputed, Verified
from ..attendance.repository import AttendanceRepository
from ..audit.service import AuditTrail, audit_transition
from ..common.datetime_utils import now_local
from ..common.locks import KeyedLock
from ..common.validators import coerce_enum, optional_text, require_positive_id
from ..core import constants
from ..core.enums import AuditAction, RequestStatus, Role
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..permissions.engine import AccessFacts, PermissionEngine
from ..permissions.policy import Capability
from ..users.model import Actor
from .model import (
    OPEN_ACTION,
    RESOLVE_ACTION,
    EscalationPayload,
    NewVerificationRequest,
    RequestResolution,
    VerificationRequest,
)
from .repository import VerificationRequestRepository

logger = logging.getLogger(__name__)

TARGET_TYPE = "verification_request"

_RESOLUTION_ACTIONS = {
    RequestStatus.APPROVED: AuditAction.VERIFICATION_REQUEST_APPROVED,
    RequestStatus.REJECTED: AuditAction.VERIFICATION_REQUEST_REJECTED,
    RequestStatus.DISPUTED: AuditAction.VERIFICATION_REQUEST_DISPUTED,
}


class EscalationService:
    """Verification requests: open, resolve, and propagate the outcome to the record."""

    def __init__(
        self,
        requests: VerificationRequestRepository,
        attendance: AttendanceRepository,
        audit: AuditTrail,
        *,
        permissions: Optional[PermissionEngine] = None,
        locks: Optional[KeyedLock] = None,
    ):
        self._requests = requests
        self._attendance = attendance
        self._audit = audit
        self._permissions = permissions or PermissionEngine()
        self._locks = locks

    def _guard(self, key):
        return self._locks.hold(key) if self._locks else nullcontext()

    def _require_record(self, record_id: Any) -> AttendanceRecord:
        record = self._attendance.get_by_id(require_positive_id(record_id, "record_id"))
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def _require_request(self, request_id: Any) -> VerificationRequest:
        req = self._requests.get_by_id(require_positive_id(request_id, "request_id"))
        if not req:
            raise NotFoundError("Verification request not found")
        return req

    def open_escalation(
        self,
        actor: Actor,
        record_id: int,
        notes: Optional[str] = None,
        evidence: Sequence[str] = (),
        *,
        now: Optional[datetime] = None,
    ) -> VerificationRequest:
        now = now or now_local()
        record = self._require_record(record_id)
        self._permissions.require(
            actor.role,
            Capability.ESCALATION_CREATE,
            AccessFacts(is_owner=record.lecturer_id == actor.user_id),
        )

        with self._guard(("escalation", record.record_id)):
            if self._requests.find_open_for_record(record.record_id):
                raise ConflictError("An open verification request already exists for this record")

            request_id = self._requests.create_if_none_open(
                NewVerificationRequest(
                    record_id=record.record_id,
                    requester_id=actor.user_id,
                    created_at=now,
                    notes=optional_text(notes),
                    evidence=tuple(str(e) for e in evidence if e),
                )
            )
            if request_id is None:
                raise ConflictError("An open verification request already exists for this record")

        audit_transition(
            self._audit,
            actor,
            AuditAction.VERIFICATION_REQUEST_CREATED,
            TARGET_TYPE,
            request_id,
            {"record_id": record.record_id},
            now=now,
        )
        logger.info("Verification request %s opened on record %s by %s", request_id, record.record_id, actor.user_id)
        return self._require_request(request_id)

    def resolve_escalation(
        self,
        actor: Actor,
        request_id: int,
        status: Union[RequestStatus, str],
        review_notes: Optional[str] = None,
        escalate: bool = False,
        *,
        now: Optional[datetime] = None,
    ) -> VerificationRequest:
        now = now or now_local()
        req = self._require_request(request_id)
        record = self._require_record(req.record_id)
        self._permissions.require(
            actor.role,
            Capability.ESCALATION_RESOLVE,
            AccessFacts(is_owner=record.lecturer_id == actor.user_id),
        )

        status = coerce_enum(RequestStatus, status, "status")
        if status == RequestStatus.PENDING:
            raise ValidationError("status must be approved, rejected or disputed")
        if escalate and status != RequestStatus.DISPUTED:
            raise ValidationError("Only a disputed request can be escalated")
        if req.status != RequestStatus.PENDING:
            raise ConflictError(f"Verification request already {req.status.value}")

        notes = optional_text(review_notes)
        resolution = RequestResolution(
            request_id=req.request_id,
            status=status,
            review_notes=notes,
            reviewed_by=actor.user_id,
            reviewed_at=now,
            escalated_at=now if escalate else None,
        )
        suffix = f": {notes}" if notes else ""
        supervisor_state = None
        if status == RequestStatus.APPROVED:
            supervisor_state = Verified(
                comment=f"Verified via request #{req.request_id}{suffix}",
                decided_by=actor.user_id,
                decided_at=now,
            )
        elif status == RequestStatus.REJECTED:
            supervisor_state = Disputed(
                comment=f"Rejected via request #{req.request_id}{suffix}",
                decided_by=actor.user_id,
                decided_at=now,
            )

        with self._guard(("escalation", record.record_id)):
            if not self._requests.resolve_if_pending(resolution, supervisor_state=supervisor_state):
                raise ConflictError("Verification request was already resolved")

        action = AuditAction.VERIFICATION_REQUEST_ESCALATED if escalate else _RESOLUTION_ACTIONS[status]
        audit_transition(
            self._audit,
            actor,
            action,
            TARGET_TYPE,
            req.request_id,
            {"record_id": record.record_id, "status": status.value, "escalated": bool(escalate)},
            now=now,
        )
        logger.info("Verification request %s %s by %s", req.request_id, status.value, actor.user_id)
        return self._require_request(req.request_id)

    def open_or_resolve(
        self,
        actor: Actor,
        payload: Union[EscalationPayload, Mapping[str, Any]],
        *,
        now: Optional[datetime] = None,
    ) -> VerificationRequest:
        if not isinstance(payload, EscalationPayload):
            payload = EscalationPayload.from_dict(payload)

        if payload.action == OPEN_ACTION:
            return self.open_escalation(actor, payload.record_id, payload.notes, payload.evidence, now=now)
        if payload.action == RESOLVE_ACTION:
            if payload.status is None:
                raise ValidationError("status is required")
            return self.resolve_escalation(
                actor,
                payload.request_id,
                payload.status,
                payload.review_notes,
                payload.escalate,
                now=now,
            )
        raise ValidationError("action must be 'open' or 'resolve'")

    def list_requests(
        self,
        actor: Actor,
        status: Union[RequestStatus, str, None] = None,
        *,
        limit: int = constants.DEFAULT_LIST_LIMIT,
    ) -> Sequence[VerificationRequest]:
        # Lecturers only hold the own-scoped grant; the repository filter supplies the ownership.
        self._permissions.require(actor.role, Capability.ESCALATION_READ, AccessFacts(is_owner=True))
        status = coerce_enum(RequestStatus, status, "status") if status else None
        limit = max(1, min(int(limit), constants.DEFAULT_LIST_LIMIT))

        if actor.role in (Role.ADMIN, Role.COORDINATOR):
            return self._requests.list_requests(status=status, limit=limit)
        if actor.role == Role.LECTURER:
            return self._requests.list_requests(status=status, record_lecturer_id=actor.user_id, limit=limit)
        return self._requests.list_requests(status=status, requester_id=actor.user_id, limit=limit)
