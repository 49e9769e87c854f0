from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from ..core.enums import CaptureMethod
from ..core.settings import AttendancePolicy
from ..geofence.verifier import Coordinates, GeofenceVerifier
from ..virtual.verifier import VirtualSessionVerifier
from .strategies.base import CaptureStrategy
from .strategies.onsite_strategy import OnsiteCaptureStrategy
from .strategies.virtual_strategy import VirtualCaptureStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose the verification strategy for a capture method."""

    onsite: CaptureStrategy
    virtual: CaptureStrategy

    @classmethod
    def from_policy(cls, policy: AttendancePolicy) -> "AttendanceStrategyFactory":
        geofence = GeofenceVerifier(
            Coordinates(latitude=policy.campus_latitude, longitude=policy.campus_longitude),
            radius_meters=policy.campus_radius_meters,
        )
        verifier = VirtualSessionVerifier(
            grace_before=timedelta(minutes=policy.grace_before_minutes),
            grace_after=timedelta(minutes=policy.grace_after_minutes),
            min_duration_ratio=policy.min_duration_ratio,
            allowed_hosts=policy.allowed_meeting_hosts,
        )
        return cls(onsite=OnsiteCaptureStrategy(geofence), virtual=VirtualCaptureStrategy(verifier))

    def for_method(self, method: CaptureMethod) -> CaptureStrategy:
        if method == CaptureMethod.VIRTUAL:
            return self.virtual
        return self.onsite
