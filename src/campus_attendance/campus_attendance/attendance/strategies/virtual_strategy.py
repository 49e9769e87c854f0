from __future__ import annotations

import logging
from datetime import datetime

from ...core.enums import CaptureMethod
from ...core.exceptions import ValidationError, VerificationFailedError
from ...schedules.model import ScheduledSession
from ...virtual.verifier import VirtualSessionVerifier
from ..model import AttendanceRecord, VirtualOutcome
from .base import CaptureDecision, CaptureRequest, CaptureStrategy, SessionEndDecision

logger = logging.getLogger(__name__)


class VirtualCaptureStrategy(CaptureStrategy):
    """Online capture: time window and meeting link at start, overlap at end."""

    method = CaptureMethod.VIRTUAL

    def __init__(self, verifier: VirtualSessionVerifier):
        self._verifier = verifier

    def decide_start(self, request: CaptureRequest) -> CaptureDecision:
        scheduled_start, scheduled_end = request.schedule.window_on(request.session_date)
        link = request.schedule.meeting_link

        result = self._verifier.verify_start(
            link,
            scheduled_start,
            scheduled_end,
            request.now,
            request.client.user_agent,
            request.client.ip_address,
        )
        if not result.verified:
            logger.info(
                "Virtual session start rejected for schedule %s: %s",
                request.schedule.schedule_id,
                ", ".join(result.failed_checks),
            )
            raise VerificationFailedError(
                "Virtual session verification failed: " + "; ".join(result.errors),
                failed_checks=result.failed_checks,
            )

        return CaptureDecision(
            method=self.method,
            virtual=VirtualOutcome(
                time_window_verified=result.time_window_verified,
                meeting_link_verified=result.meeting_link_verified,
                device_fingerprint=result.device_fingerprint,
                ip_address=request.client.ip_address,
                user_agent=request.client.user_agent,
                session_start=request.now,
            ),
        )

    def decide_end(self, *, record: AttendanceRecord, schedule: ScheduledSession, now: datetime) -> SessionEndDecision:
        if record.virtual is None:
            raise ValidationError("Record has no virtual session")

        scheduled_start, scheduled_end = schedule.window_on(record.session_date)
        result = self._verifier.verify_duration(record.virtual.session_start, now, scheduled_start, scheduled_end)
        if not result.verified:
            logger.info("Virtual session %s ended short: %s", record.record_id, result.error)
        return SessionEndDecision(
            duration_met=result.verified,
            overlap_minutes=result.overlap_minutes,
            required_minutes=result.required_minutes,
            skipped=result.skipped,
        )
