from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Tuple

from . import constants


@dataclass(frozen=True)
class AttendancePolicy:
    """Named thresholds for location and virtual-session checks."""

    campus_latitude: float = constants.DEFAULT_CAMPUS_LATITUDE
    campus_longitude: float = constants.DEFAULT_CAMPUS_LONGITUDE
    campus_radius_meters: float = constants.DEFAULT_CAMPUS_RADIUS_METERS
    grace_before_minutes: int = constants.DEFAULT_VIRTUAL_GRACE_BEFORE_MINUTES
    grace_after_minutes: int = constants.DEFAULT_VIRTUAL_GRACE_AFTER_MINUTES
    min_duration_ratio: float = constants.DEFAULT_VIRTUAL_MIN_DURATION_RATIO
    allowed_meeting_hosts: Tuple[str, ...] = field(default_factory=tuple)


def _hosts(value: Any) -> Tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    return tuple(h.strip().lower() for h in value if h and h.strip())


def load_policy(settings: Any) -> AttendancePolicy:
    """Build the policy from a settings module (missing names fall back to defaults)."""

    return AttendancePolicy(
        campus_latitude=float(getattr(settings, "CAMPUS_LATITUDE", constants.DEFAULT_CAMPUS_LATITUDE)),
        campus_longitude=float(getattr(settings, "CAMPUS_LONGITUDE", constants.DEFAULT_CAMPUS_LONGITUDE)),
        campus_radius_meters=float(getattr(settings, "CAMPUS_RADIUS_METERS", constants.DEFAULT_CAMPUS_RADIUS_METERS)),
        grace_before_minutes=int(
            getattr(settings, "VIRTUAL_GRACE_BEFORE_MINUTES", constants.DEFAULT_VIRTUAL_GRACE_BEFORE_MINUTES)
        ),
        grace_after_minutes=int(
            getattr(settings, "VIRTUAL_GRACE_AFTER_MINUTES", constants.DEFAULT_VIRTUAL_GRACE_AFTER_MINUTES)
        ),
        min_duration_ratio=float(
            getattr(settings, "VIRTUAL_MIN_DURATION_RATIO", constants.DEFAULT_VIRTUAL_MIN_DURATION_RATIO)
        ),
        allowed_meeting_hosts=_hosts(getattr(settings, "VIRTUAL_ALLOWED_MEETING_HOSTS", "")),
    )
