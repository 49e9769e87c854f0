from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from src.campus_attendance.campus_attendance.attendance.model import ClientInfo, is_pending
from src.campus_attendance.campus_attendance.core.enums import CaptureMethod, VirtualAction
from src.campus_attendance.campus_attendance.core.exceptions import (
    AuditInconsistencyError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
    VerificationFailedError,
)
from src.campus_attendance.campus_attendance.virtual.verifier import MEETING_LINK_CHECK, TIME_WINDOW_CHECK
from tests.fakes import (
    CAMPUS,
    ONSITE_SCHEDULE_ID,
    VIRTUAL_NO_LINK_SCHEDULE_ID,
    VIRTUAL_SCHEDULE_ID,
    north_of,
)

CLIENT = ClientInfo(user_agent="Mozilla/5.0", ip_address="10.0.0.1")


@pytest.fixture
def service(container):
    return container.attendance_service


def test_onsite_capture_within_radius(service, lecturer, fixed_now, attendance_repo, audit_repo):
    record = service.capture_attendance(
        lecturer, ONSITE_SCHEDULE_ID, "onsite", coordinates=north_of(CAMPUS, 150), now=fixed_now
    )

    assert record.location_verified is True
    assert record.geofence.distance_meters == pytest.approx(150, abs=1)
    assert record.session_date == fixed_now.date()
    assert is_pending(record.class_rep) and is_pending(record.supervisor)
    assert list(attendance_repo.records) == [record.record_id]
    assert audit_repo.actions() == ["ATTENDANCE_RECORDED"]
    assert audit_repo.entries[0].risk_score == 1


def test_onsite_capture_outside_radius_is_rejected(service, lecturer, fixed_now, attendance_repo, audit_repo):
    with pytest.raises(VerificationFailedError) as exc:
        service.capture_attendance(
            lecturer, ONSITE_SCHEDULE_ID, CaptureMethod.ONSITE, coordinates=north_of(CAMPUS, 500), now=fixed_now
        )

    assert exc.value.distance_meters == pytest.approx(500, abs=1)
    assert attendance_repo.records == {}
    assert audit_repo.entries == []


@pytest.mark.parametrize(
    "coordinates",
    [None, (None, -0.187), (91.0, 0.0), (0.0, -181.0), ("north", "east"), (float("nan"), 0.0)],
)
def test_onsite_capture_validates_coordinates(service, lecturer, fixed_now, coordinates, attendance_repo):
    with pytest.raises(ValidationError):
        service.capture_attendance(lecturer, ONSITE_SCHEDULE_ID, "onsite", coordinates=coordinates, now=fixed_now)

    assert attendance_repo.records == {}


def test_second_capture_same_day_conflicts(service, lecturer, fixed_now, audit_repo):
    service.capture_attendance(lecturer, ONSITE_SCHEDULE_ID, "onsite", coordinates=CAMPUS, now=fixed_now)

    with pytest.raises(ConflictError):
        service.capture_attendance(
            lecturer, ONSITE_SCHEDULE_ID, "onsite", coordinates=CAMPUS, now=fixed_now + timedelta(minutes=5)
        )

    assert len(audit_repo.entries) == 1


def test_capture_on_another_day_is_a_new_record(service, lecturer, fixed_now):
    first = service.capture_attendance(lecturer, ONSITE_SCHEDULE_ID, "onsite", coordinates=CAMPUS, now=fixed_now)
    second = service.capture_attendance(
        lecturer, ONSITE_SCHEDULE_ID, "onsite", coordinates=CAMPUS, now=fixed_now + timedelta(days=7)
    )

    assert first.record_id != second.record_id


def test_concurrent_captures_create_one_record(service, lecturer, fixed_now, attendance_repo):
    def attempt(_):
        try:
            service.capture_attendance(lecturer, ONSITE_SCHEDULE_ID, "onsite", coordinates=CAMPUS, now=fixed_now)
            return "ok"
        except ConflictError:
            return "conflict"

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(attempt, range(8)))

    assert results.count("ok") == 1
    assert results.count("conflict") == 7
    assert len(attendance_repo.records) == 1


def test_only_the_scheduled_lecturer_can_capture(service, other_lecturer, class_rep, admin, fixed_now, audit_repo):
    for actor in (other_lecturer, class_rep, admin):
        with pytest.raises(AuthorizationError):
            service.capture_attendance(actor, ONSITE_SCHEDULE_ID, "onsite", coordinates=CAMPUS, now=fixed_now)

    assert audit_repo.entries == []


def test_unknown_schedule(service, lecturer, fixed_now):
    with pytest.raises(NotFoundError):
        service.capture_attendance(lecturer, 999, "onsite", coordinates=CAMPUS, now=fixed_now)


def test_method_must_match_schedule_mode(service, lecturer, fixed_now):
    with pytest.raises(ValidationError):
        service.capture_attendance(lecturer, VIRTUAL_SCHEDULE_ID, "onsite", coordinates=CAMPUS, now=fixed_now)
    with pytest.raises(ValidationError):
        service.capture_attendance(lecturer, ONSITE_SCHEDULE_ID, "virtual", now=fixed_now)


def test_unknown_method_is_rejected(service, lecturer, fixed_now):
    with pytest.raises(ValidationError):
        service.capture_attendance(lecturer, ONSITE_SCHEDULE_ID, "carrier-pigeon", now=fixed_now)


def test_virtual_start_records_outcome(service, lecturer, fixed_now, audit_repo):
    record = service.capture_attendance(lecturer, VIRTUAL_SCHEDULE_ID, "virtual", client=CLIENT, now=fixed_now)

    assert record.method == CaptureMethod.VIRTUAL
    assert record.geofence is None
    assert record.virtual.time_window_verified is True
    assert record.virtual.meeting_link_verified is True
    assert record.virtual.session_start == fixed_now
    assert record.virtual.duration_met is None
    assert record.virtual.ip_address == "10.0.0.1"
    assert len(record.virtual.device_fingerprint) == 16
    assert audit_repo.actions() == ["ATTENDANCE_RECORDED"]


def test_virtual_start_without_link_fails(service, lecturer, fixed_now, attendance_repo, audit_repo):
    with pytest.raises(VerificationFailedError) as exc:
        service.capture_attendance(lecturer, VIRTUAL_NO_LINK_SCHEDULE_ID, "virtual", now=fixed_now)

    assert exc.value.failed_checks == [MEETING_LINK_CHECK]
    assert attendance_repo.records == {}
    assert audit_repo.entries == []


def test_virtual_start_outside_window_fails(service, lecturer, fixed_now):
    too_early = fixed_now.replace(hour=8, minute=0)

    with pytest.raises(VerificationFailedError) as exc:
        service.capture_attendance(lecturer, VIRTUAL_SCHEDULE_ID, "virtual", now=too_early)

    assert exc.value.failed_checks == [TIME_WINDOW_CHECK]


def test_virtual_end_checks_duration(service, lecturer, fixed_now, audit_repo):
    start = fixed_now.replace(hour=9, minute=0)
    service.capture_attendance(lecturer, VIRTUAL_SCHEDULE_ID, "virtual", now=start)

    record = service.capture_attendance(
        lecturer, VIRTUAL_SCHEDULE_ID, "virtual", virtual_action=VirtualAction.END, now=start.replace(hour=10, minute=45)
    )

    assert record.virtual.duration_met is True
    assert record.virtual.session_end == start.replace(hour=10, minute=45)
    assert audit_repo.actions() == ["ATTENDANCE_RECORDED", "ATTENDANCE_SESSION_ENDED"]


def test_virtual_end_too_early_is_recorded_as_unmet(service, lecturer, fixed_now):
    start = fixed_now.replace(hour=9, minute=0)
    service.capture_attendance(lecturer, VIRTUAL_SCHEDULE_ID, "virtual", now=start)

    record = service.capture_attendance(
        lecturer, VIRTUAL_SCHEDULE_ID, "virtual", virtual_action="end", now=start.replace(minute=30)
    )

    assert record.virtual.duration_met is False


def test_virtual_end_twice_conflicts(service, lecturer, fixed_now, audit_repo):
    service.capture_attendance(lecturer, VIRTUAL_SCHEDULE_ID, "virtual", now=fixed_now)
    service.capture_attendance(lecturer, VIRTUAL_SCHEDULE_ID, "virtual", virtual_action="end", now=fixed_now.replace(hour=11))

    with pytest.raises(ConflictError):
        service.capture_attendance(
            lecturer, VIRTUAL_SCHEDULE_ID, "virtual", virtual_action="end", now=fixed_now.replace(hour=11, minute=5)
        )

    assert len(audit_repo.entries) == 2


def test_virtual_end_without_start(service, lecturer, fixed_now):
    with pytest.raises(NotFoundError):
        service.capture_attendance(lecturer, VIRTUAL_SCHEDULE_ID, "virtual", virtual_action="end", now=fixed_now)


def test_audit_failure_after_capture_is_reported(service, lecturer, fixed_now, attendance_repo, audit_repo):
    audit_repo.fail_next = True

    with pytest.raises(AuditInconsistencyError) as exc:
        service.capture_attendance(lecturer, ONSITE_SCHEDULE_ID, "onsite", coordinates=CAMPUS, now=fixed_now)

    assert exc.value.target_type == "attendance_record"
    assert list(attendance_repo.records) == [exc.value.target_id]
