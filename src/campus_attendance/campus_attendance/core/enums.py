from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Closed set of roles handed to the core by the identity provider."""

    ADMIN = "ADMIN"
    COORDINATOR = "COORDINATOR"
    LECTURER = "LECTURER"
    CLASS_REP = "CLASS_REP"
    SUPERVISOR = "SUPERVISOR"
    ONLINE_SUPERVISOR = "ONLINE_SUPERVISOR"


class DeliveryMode(str, Enum):
    ONSITE = "onsite"
    VIRTUAL = "virtual"


class CaptureMethod(str, Enum):
    ONSITE = "onsite"
    VIRTUAL = "virtual"


class VirtualAction(str, Enum):
    START = "start"
    END = "end"


class Decision(str, Enum):
    """Outcome chosen by a class rep or supervisor for one channel."""

    VERIFIED = "verified"
    DISPUTED = "disputed"


class RequestStatus(str, Enum):
    """Lifecycle of a verification (escalation) request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    DISPUTED = "disputed"


class AuditAction(str, Enum):
    ATTENDANCE_RECORDED = "ATTENDANCE_RECORDED"
    ATTENDANCE_SESSION_ENDED = "ATTENDANCE_SESSION_ENDED"
    ATTENDANCE_VERIFIED = "ATTENDANCE_VERIFIED"
    ATTENDANCE_DISPUTED = "ATTENDANCE_DISPUTED"
    VERIFICATION_REQUEST_CREATED = "VERIFICATION_REQUEST_CREATED"
    VERIFICATION_REQUEST_APPROVED = "VERIFICATION_REQUEST_APPROVED"
    VERIFICATION_REQUEST_REJECTED = "VERIFICATION_REQUEST_REJECTED"
    VERIFICATION_REQUEST_DISPUTED = "VERIFICATION_REQUEST_DISPUTED"
    VERIFICATION_REQUEST_ESCALATED = "VERIFICATION_REQUEST_ESCALATED"
    REPORT_GENERATED = "REPORT_GENERATED"
    REPORT_EXPORTED = "REPORT_EXPORTED"
