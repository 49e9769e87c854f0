from __future__ import annotations

import logging
from datetime import datetime

from ...common.validators import validate_coordinates
from ...core.enums import CaptureMethod
from ...core.exceptions import ValidationError, VerificationFailedError
from ...geofence.verifier import Coordinates, GeofenceVerifier
from ...schedules.model import ScheduledSession
from ..model import AttendanceRecord, GeofenceOutcome
from .base import CaptureDecision, CaptureRequest, CaptureStrategy, SessionEndDecision

logger = logging.getLogger(__name__)


class OnsiteCaptureStrategy(CaptureStrategy):
    """In-person capture gated by the campus geofence."""

    method = CaptureMethod.ONSITE

    def __init__(self, geofence: GeofenceVerifier):
        self._geofence = geofence

    def decide_start(self, request: CaptureRequest) -> CaptureDecision:
        if request.coordinates is None:
            raise ValidationError("GPS coordinates are required for onsite attendance")
        lat, lng = validate_coordinates(*request.coordinates)

        result = self._geofence.verify(Coordinates(latitude=lat, longitude=lng))
        if not result.verified:
            logger.info(
                "Onsite capture rejected for schedule %s: %.0fm from campus (limit %.0fm)",
                request.schedule.schedule_id,
                result.distance_meters,
                result.radius_meters,
            )
            raise VerificationFailedError(
                f"You must be within {result.radius_meters:.0f}m of campus to take attendance. "
                f"Current distance: {round(result.distance_meters)}m",
                distance_meters=result.distance_meters,
            )

        return CaptureDecision(
            method=self.method,
            geofence=GeofenceOutcome(
                verified=True,
                distance_meters=result.distance_meters,
                latitude=lat,
                longitude=lng,
            ),
        )

    def decide_end(self, *, record: AttendanceRecord, schedule: ScheduledSession, now: datetime) -> SessionEndDecision:
        raise ValidationError("Only virtual sessions can be ended")
