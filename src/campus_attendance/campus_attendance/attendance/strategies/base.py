from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ...core.enums import CaptureMethod
from ...schedules.model import ScheduledSession
from ..model import AttendanceRecord, ClientInfo, GeofenceOutcome, VirtualOutcome


@dataclass(frozen=True)
class CaptureRequest:
    schedule: ScheduledSession
    session_date: date
    now: datetime
    client: ClientInfo
    coordinates: Optional[tuple[float, float]] = None


@dataclass(frozen=True)
class CaptureDecision:
    method: CaptureMethod
    geofence: Optional[GeofenceOutcome] = None
    virtual: Optional[VirtualOutcome] = None


@dataclass(frozen=True)
class SessionEndDecision:
    duration_met: bool
    overlap_minutes: float
    required_minutes: float
    skipped: bool = False


class CaptureStrategy(ABC):
    """Strategy Pattern: encapsulate how a capture method is verified.

    ``decide_start`` raises VerificationFailedError when the evidence does not
    pass; nothing is persisted by a strategy.
    """

    method: CaptureMethod

    @abstractmethod
    def decide_start(self, request: CaptureRequest) -> CaptureDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_end(self, *, record: AttendanceRecord, schedule: ScheduledSession, now: datetime) -> SessionEndDecision:
        raise NotImplementedError
