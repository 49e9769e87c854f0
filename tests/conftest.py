from __future__ import annotations

from datetime import datetime, time

import pytest

from src.campus_attendance.campus_attendance.container import assemble
from src.campus_attendance.campus_attendance.core.enums import DeliveryMode, Role
from src.campus_attendance.campus_attendance.core.settings import AttendancePolicy
from src.campus_attendance.campus_attendance.schedules.model import ScheduledSession
from src.campus_attendance.campus_attendance.users.model import Actor
from tests.fakes import (
    ADMIN_ID,
    CAMPUS,
    CLASS_GROUP_ID,
    CLASS_REP_ID,
    COORDINATOR_ID,
    LECTURER_ID,
    ONLINE_SUPERVISOR_ID,
    ONSITE_SCHEDULE_ID,
    OTHER_CLASS_GROUP_ID,
    OTHER_CLASS_REP_ID,
    OTHER_LECTURER_ID,
    SUPERVISOR_ID,
    VIRTUAL_NO_LINK_SCHEDULE_ID,
    VIRTUAL_SCHEDULE_ID,
    InMemoryAttendance,
    InMemoryAudit,
    InMemoryClassGroups,
    InMemoryRequests,
    InMemorySchedules,
)


@pytest.fixture
def fixed_now() -> datetime:
    # Monday, inside the 09:00-11:00 slot
    return datetime(2025, 3, 3, 9, 30, 0)


@pytest.fixture
def policy() -> AttendancePolicy:
    return AttendancePolicy(campus_latitude=CAMPUS[0], campus_longitude=CAMPUS[1], campus_radius_meters=300.0)


@pytest.fixture
def schedules() -> InMemorySchedules:
    common = dict(
        course_code="CS101",
        lecturer_id=LECTURER_ID,
        class_group_id=CLASS_GROUP_ID,
        day_of_week=0,
        start_time=time(9, 0),
        end_time=time(11, 0),
    )
    return InMemorySchedules(
        ScheduledSession(schedule_id=ONSITE_SCHEDULE_ID, mode=DeliveryMode.ONSITE, location="Block A, Room 4", **common),
        ScheduledSession(
            schedule_id=VIRTUAL_SCHEDULE_ID,
            mode=DeliveryMode.VIRTUAL,
            meeting_link="https://zoom.us/j/123456789",
            **common,
        ),
        ScheduledSession(schedule_id=VIRTUAL_NO_LINK_SCHEDULE_ID, mode=DeliveryMode.VIRTUAL, meeting_link="", **common),
    )


@pytest.fixture
def class_groups() -> InMemoryClassGroups:
    return InMemoryClassGroups({CLASS_REP_ID: {CLASS_GROUP_ID}, OTHER_CLASS_REP_ID: {OTHER_CLASS_GROUP_ID}})


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def requests_repo(attendance_repo) -> InMemoryRequests:
    return InMemoryRequests(attendance_repo)


@pytest.fixture
def audit_repo() -> InMemoryAudit:
    return InMemoryAudit()


@pytest.fixture
def container(policy, schedules, class_groups, attendance_repo, requests_repo, audit_repo):
    return assemble(
        policy=policy,
        schedules_repo=schedules,
        class_groups_repo=class_groups,
        attendance_repo=attendance_repo,
        requests_repo=requests_repo,
        audit_repo=audit_repo,
    )


@pytest.fixture
def lecturer() -> Actor:
    return Actor(user_id=LECTURER_ID, role=Role.LECTURER)


@pytest.fixture
def other_lecturer() -> Actor:
    return Actor(user_id=OTHER_LECTURER_ID, role=Role.LECTURER)


@pytest.fixture
def class_rep() -> Actor:
    return Actor(user_id=CLASS_REP_ID, role=Role.CLASS_REP)


@pytest.fixture
def other_class_rep() -> Actor:
    return Actor(user_id=OTHER_CLASS_REP_ID, role=Role.CLASS_REP)


@pytest.fixture
def supervisor() -> Actor:
    return Actor(user_id=SUPERVISOR_ID, role=Role.SUPERVISOR)


@pytest.fixture
def online_supervisor() -> Actor:
    return Actor(user_id=ONLINE_SUPERVISOR_ID, role=Role.ONLINE_SUPERVISOR)


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id=ADMIN_ID, role=Role.ADMIN)


@pytest.fixture
def coordinator() -> Actor:
    return Actor(user_id=COORDINATOR_ID, role=Role.COORDINATOR)
