from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

from ..core.enums import CaptureMethod, Decision


@dataclass(frozen=True)
class Pending:
    """Channel not decided yet."""


@dataclass(frozen=True)
class Verified:
    comment: Optional[str]
    decided_by: int
    decided_at: datetime


@dataclass(frozen=True)
class Disputed:
    comment: Optional[str]
    decided_by: int
    decided_at: datetime


VerificationState = Union[Pending, Verified, Disputed]

PENDING = Pending()


def is_pending(state: VerificationState) -> bool:
    return isinstance(state, Pending)


def decided(decision: Decision, *, comment: Optional[str], decided_by: int, decided_at: datetime) -> VerificationState:
    if decision == Decision.VERIFIED:
        return Verified(comment=comment, decided_by=decided_by, decided_at=decided_at)
    return Disputed(comment=comment, decided_by=decided_by, decided_at=decided_at)


def to_flag(state: VerificationState) -> Optional[bool]:
    """Storage form: NULL / 1 / 0."""

    if isinstance(state, Verified):
        return True
    if isinstance(state, Disputed):
        return False
    return None


def from_flag(
    flag: Optional[bool],
    *,
    comment: Optional[str] = None,
    decided_by: Optional[int] = None,
    decided_at: Optional[datetime] = None,
) -> VerificationState:
    if flag is None:
        return PENDING
    cls = Verified if flag else Disputed
    return cls(comment=comment, decided_by=int(decided_by or 0), decided_at=decided_at)


def state_to_dict(state: VerificationState) -> dict:
    if isinstance(state, Pending):
        return {"status": "pending", "verified": None}
    return {
        "status": "verified" if isinstance(state, Verified) else "disputed",
        "verified": isinstance(state, Verified),
        "comment": state.comment,
        "decided_by": state.decided_by,
        "decided_at": state.decided_at.isoformat() if state.decided_at else None,
    }


@dataclass(frozen=True)
class ClientInfo:
    user_agent: str = "unknown"
    ip_address: str = "unknown"


@dataclass(frozen=True)
class GeofenceOutcome:
    verified: bool
    distance_meters: float
    latitude: float
    longitude: float


@dataclass(frozen=True)
class VirtualOutcome:
    time_window_verified: bool
    meeting_link_verified: bool
    device_fingerprint: str
    ip_address: str
    user_agent: str
    session_start: Optional[datetime]
    session_end: Optional[datetime] = None
    # None until the session is ended.
    duration_met: Optional[bool] = None


@dataclass(frozen=True)
class NewAttendanceRecord:
    schedule_id: int
    lecturer_id: int
    class_group_id: int
    session_date: date
    captured_at: datetime
    method: CaptureMethod
    geofence: Optional[GeofenceOutcome] = None
    virtual: Optional[VirtualOutcome] = None


@dataclass(frozen=True)
class AttendanceRecord:
    """One lecturer's capture for one scheduled session on one day."""

    record_id: int
    schedule_id: int
    lecturer_id: int
    class_group_id: int
    session_date: date
    captured_at: datetime
    method: CaptureMethod
    geofence: Optional[GeofenceOutcome] = None
    virtual: Optional[VirtualOutcome] = None
    class_rep: VerificationState = PENDING
    supervisor: VerificationState = PENDING

    @property
    def location_verified(self) -> Optional[bool]:
        return self.geofence.verified if self.geofence else None

    def to_dict(self) -> dict:
        data = {
            "record_id": self.record_id,
            "schedule_id": self.schedule_id,
            "lecturer_id": self.lecturer_id,
            "class_group_id": self.class_group_id,
            "session_date": self.session_date.isoformat(),
            "captured_at": self.captured_at.isoformat(),
            "method": self.method.value,
            "location_verified": self.location_verified,
            "class_rep_verification": state_to_dict(self.class_rep),
            "supervisor_verification": state_to_dict(self.supervisor),
        }
        if self.geofence:
            data["distance_meters"] = round(self.geofence.distance_meters)
            data["latitude"] = self.geofence.latitude
            data["longitude"] = self.geofence.longitude
        if self.virtual:
            v = self.virtual
            data["virtual"] = {
                "time_window_verified": v.time_window_verified,
                "meeting_link_verified": v.meeting_link_verified,
                "duration_met": v.duration_met,
                "device_fingerprint": v.device_fingerprint,
                "session_start": v.session_start.isoformat() if v.session_start else None,
                "session_end": v.session_end.isoformat() if v.session_end else None,
            }
        return data
