from datetime import datetime, timedelta

import pytest

from src.campus_attendance.campus_attendance.attendance.factory import AttendanceStrategyFactory
from src.campus_attendance.campus_attendance.attendance.model import ClientInfo
from src.campus_attendance.campus_attendance.attendance.strategies.base import CaptureRequest
from src.campus_attendance.campus_attendance.attendance.strategies.onsite_strategy import OnsiteCaptureStrategy
from src.campus_attendance.campus_attendance.attendance.strategies.virtual_strategy import VirtualCaptureStrategy
from src.campus_attendance.campus_attendance.core.enums import CaptureMethod
from src.campus_attendance.campus_attendance.core.exceptions import ValidationError, VerificationFailedError
from src.campus_attendance.campus_attendance.core.settings import AttendancePolicy
from tests.fakes import CAMPUS, ONSITE_SCHEDULE_ID, VIRTUAL_SCHEDULE_ID, north_of


@pytest.fixture
def factory(policy):
    return AttendanceStrategyFactory.from_policy(policy)


def request_for(schedule, now, coordinates=None):
    return CaptureRequest(
        schedule=schedule,
        session_date=now.date(),
        now=now,
        client=ClientInfo(user_agent="Mozilla/5.0", ip_address="10.0.0.1"),
        coordinates=coordinates,
    )


def test_factory_picks_strategy_by_method(factory):
    assert isinstance(factory.for_method(CaptureMethod.ONSITE), OnsiteCaptureStrategy)
    assert isinstance(factory.for_method(CaptureMethod.VIRTUAL), VirtualCaptureStrategy)


def test_radius_comes_from_policy(schedules, fixed_now):
    tight = AttendanceStrategyFactory.from_policy(
        AttendancePolicy(campus_latitude=CAMPUS[0], campus_longitude=CAMPUS[1], campus_radius_meters=100.0)
    )
    onsite = tight.for_method(CaptureMethod.ONSITE)
    schedule = schedules.get_by_id(ONSITE_SCHEDULE_ID)

    with pytest.raises(VerificationFailedError) as exc:
        onsite.decide_start(request_for(schedule, fixed_now, north_of(CAMPUS, 150)))
    assert exc.value.distance_meters == pytest.approx(150, abs=1)


def test_onsite_decision_carries_geofence(factory, schedules, fixed_now):
    decision = factory.for_method(CaptureMethod.ONSITE).decide_start(
        request_for(schedules.get_by_id(ONSITE_SCHEDULE_ID), fixed_now, ("5.6037", "-0.1870"))
    )

    assert decision.method == CaptureMethod.ONSITE
    assert decision.geofence.verified is True
    assert decision.geofence.latitude == 5.6037
    assert decision.virtual is None


def test_onsite_sessions_cannot_be_ended(factory, schedules, fixed_now):
    with pytest.raises(ValidationError):
        factory.for_method(CaptureMethod.ONSITE).decide_end(
            record=None, schedule=schedules.get_by_id(ONSITE_SCHEDULE_ID), now=fixed_now
        )


def test_virtual_decision_fingerprints_client(factory, schedules, fixed_now):
    decision = factory.for_method(CaptureMethod.VIRTUAL).decide_start(
        request_for(schedules.get_by_id(VIRTUAL_SCHEDULE_ID), fixed_now)
    )

    assert decision.geofence is None
    assert decision.virtual.time_window_verified is True
    assert decision.virtual.meeting_link_verified is True
    assert len(decision.virtual.device_fingerprint) == 16
    assert decision.virtual.session_start == fixed_now
    assert decision.virtual.session_end is None


def test_grace_edges_are_inclusive(factory, schedules):
    schedule = schedules.get_by_id(VIRTUAL_SCHEDULE_ID)
    virtual = factory.for_method(CaptureMethod.VIRTUAL)
    start = datetime(2025, 3, 3, 9, 0)

    virtual.decide_start(request_for(schedule, start - timedelta(minutes=15)))
    with pytest.raises(VerificationFailedError):
        virtual.decide_start(request_for(schedule, start - timedelta(minutes=15, seconds=1)))
