from datetime import date, datetime, time

import pytest

from src.campus_attendance.campus_attendance.core.enums import DeliveryMode
from src.campus_attendance.campus_attendance.core.exceptions import ConflictError, NotFoundError
from src.campus_attendance.campus_attendance.schedules.model import ScheduledSession
from tests.fakes import CLASS_GROUP_ID, LECTURER_ID

LATE_SCHEDULE_ID = 4
OVERNIGHT_SCHEDULE_ID = 5


def virtual_slot(schedule_id, start, end):
    return ScheduledSession(
        schedule_id=schedule_id,
        course_code="CS401",
        lecturer_id=LECTURER_ID,
        class_group_id=CLASS_GROUP_ID,
        day_of_week=0,
        start_time=start,
        end_time=end,
        mode=DeliveryMode.VIRTUAL,
        meeting_link="https://zoom.us/j/987654321",
    )


@pytest.fixture
def service(container, schedules):
    schedules.by_id[LATE_SCHEDULE_ID] = virtual_slot(LATE_SCHEDULE_ID, time(22, 0), time(23, 50))
    schedules.by_id[OVERNIGHT_SCHEDULE_ID] = virtual_slot(OVERNIGHT_SCHEDULE_ID, time(22, 30), time(0, 30))
    return container.attendance_service


def test_window_crossing_midnight_ends_next_day():
    slot = virtual_slot(OVERNIGHT_SCHEDULE_ID, time(22, 30), time(0, 30))
    assert slot.window_on(date(2025, 3, 3)) == (datetime(2025, 3, 3, 22, 30), datetime(2025, 3, 4, 0, 30))


def test_late_session_ended_after_midnight(service, lecturer):
    started = service.capture_attendance(lecturer, LATE_SCHEDULE_ID, "virtual", now=datetime(2025, 3, 3, 22, 0))

    ended = service.capture_attendance(
        lecturer, LATE_SCHEDULE_ID, "virtual", virtual_action="end", now=datetime(2025, 3, 4, 0, 5)
    )

    assert ended.record_id == started.record_id
    assert ended.session_date == date(2025, 3, 3)
    assert ended.virtual.session_end == datetime(2025, 3, 4, 0, 5)
    assert ended.virtual.duration_met is True


def test_overnight_slot_start_and_end(service, lecturer):
    service.capture_attendance(lecturer, OVERNIGHT_SCHEDULE_ID, "virtual", now=datetime(2025, 3, 3, 22, 30))

    ended = service.capture_attendance(
        lecturer, OVERNIGHT_SCHEDULE_ID, "virtual", virtual_action="end", now=datetime(2025, 3, 4, 0, 30)
    )

    assert ended.virtual.duration_met is True


def test_ending_twice_after_midnight_conflicts(service, lecturer, audit_repo):
    service.capture_attendance(lecturer, LATE_SCHEDULE_ID, "virtual", now=datetime(2025, 3, 3, 22, 0))
    service.capture_attendance(
        lecturer, LATE_SCHEDULE_ID, "virtual", virtual_action="end", now=datetime(2025, 3, 4, 0, 5)
    )

    with pytest.raises(ConflictError):
        service.capture_attendance(
            lecturer, LATE_SCHEDULE_ID, "virtual", virtual_action="end", now=datetime(2025, 3, 4, 0, 10)
        )
    assert audit_repo.actions() == ["ATTENDANCE_RECORDED", "ATTENDANCE_SESSION_ENDED"]


def test_sessions_older_than_a_day_are_not_ended(service, lecturer):
    service.capture_attendance(lecturer, LATE_SCHEDULE_ID, "virtual", now=datetime(2025, 3, 3, 22, 0))

    with pytest.raises(NotFoundError):
        service.capture_attendance(
            lecturer, LATE_SCHEDULE_ID, "virtual", virtual_action="end", now=datetime(2025, 3, 5, 0, 5)
        )
