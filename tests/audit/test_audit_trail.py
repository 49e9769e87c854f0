from dataclasses import replace
from datetime import datetime

import pytest

from src.campus_attendance.campus_attendance.audit.service import (
    RISK_SCORES,
    AuditTrail,
    audit_transition,
    risk_level,
    risk_score_for,
)
from src.campus_attendance.campus_attendance.core.enums import AuditAction, Role
from src.campus_attendance.campus_attendance.core.exceptions import (
    AuditInconsistencyError,
    AuthorizationError,
    NotFoundError,
)
from src.campus_attendance.campus_attendance.users.model import Actor
from tests.fakes import InMemoryAudit

NOW = datetime(2025, 3, 3, 9, 30)
LECTURER = Actor(user_id=10, role=Role.LECTURER)
ADMIN = Actor(user_id=1, role=Role.ADMIN)


@pytest.fixture
def repo():
    return InMemoryAudit()


@pytest.fixture
def trail(repo):
    return AuditTrail(repo)


def test_record_appends_entry_with_static_risk(trail, repo):
    entry = trail.record(LECTURER, AuditAction.ATTENDANCE_RECORDED, "attendance_record", 7, {"method": "onsite"}, now=NOW)

    assert entry.entry_id == 1
    assert entry.risk_score == 1
    assert entry.actor_role == "LECTURER"
    assert entry.metadata == {"method": "onsite"}
    assert repo.entries == [entry]


@pytest.mark.parametrize(
    "action, score",
    [
        (AuditAction.ATTENDANCE_RECORDED, 1),
        (AuditAction.ATTENDANCE_SESSION_ENDED, 1),
        (AuditAction.ATTENDANCE_VERIFIED, 3),
        (AuditAction.ATTENDANCE_DISPUTED, 4),
        (AuditAction.VERIFICATION_REQUEST_CREATED, 5),
        (AuditAction.VERIFICATION_REQUEST_ESCALATED, 5),
        (AuditAction.VERIFICATION_REQUEST_APPROVED, 3),
        (AuditAction.VERIFICATION_REQUEST_REJECTED, 4),
        (AuditAction.REPORT_EXPORTED, 3),
        ("SOMETHING_ELSE", 1),
    ],
)
def test_risk_scores_are_deterministic(action, score):
    assert risk_score_for(action) == score


def test_every_score_is_in_range():
    assert all(0 <= s <= 10 for s in RISK_SCORES.values())


@pytest.mark.parametrize("score, level", [(0, "Minimal"), (1, "Minimal"), (2, "Low"), (5, "Medium"), (8, "High"), (10, "High")])
def test_risk_level_buckets(score, level):
    assert risk_level(score) == level


def test_integrity_detects_tampering(trail):
    entry = trail.record(LECTURER, AuditAction.ATTENDANCE_DISPUTED, "attendance_record", 3, {"channel": "class_rep"}, now=NOW)

    assert trail.verify_integrity(entry) is True
    assert trail.verify_integrity(replace(entry, risk_score=1)) is False
    assert trail.verify_integrity(replace(entry, metadata={"channel": "supervisor"})) is False


def test_metadata_is_normalised_before_hashing(trail):
    entry = trail.record(LECTURER, AuditAction.ATTENDANCE_RECORDED, "attendance_record", 1, {"at": NOW}, now=NOW)

    assert entry.metadata == {"at": str(NOW)}
    assert trail.verify_integrity(entry) is True


def test_persistence_errors_propagate(trail, repo):
    repo.fail_next = True

    with pytest.raises(RuntimeError):
        trail.record(LECTURER, AuditAction.ATTENDANCE_RECORDED, "attendance_record", 1, now=NOW)


def test_audit_transition_reports_inconsistency(trail, repo):
    repo.fail_next = True

    with pytest.raises(AuditInconsistencyError) as exc:
        audit_transition(trail, LECTURER, AuditAction.ATTENDANCE_RECORDED, "attendance_record", 42, now=NOW)

    assert exc.value.target_id == 42
    assert isinstance(exc.value.__cause__, RuntimeError)


def test_list_entries_requires_audit_read(trail):
    with pytest.raises(AuthorizationError):
        trail.list_entries(LECTURER)


def test_list_entries_filters(trail):
    trail.record(LECTURER, AuditAction.ATTENDANCE_RECORDED, "attendance_record", 1, now=NOW)
    trail.record(ADMIN, AuditAction.VERIFICATION_REQUEST_APPROVED, "verification_request", 1, now=NOW)
    trail.record(LECTURER, AuditAction.ATTENDANCE_DISPUTED, "attendance_record", 2, now=NOW)

    assert len(trail.list_entries(ADMIN)) == 3
    assert [e.target_id for e in trail.list_entries(ADMIN, target_type="attendance_record", target_id=2)] == [2]
    assert {e.action for e in trail.list_entries(ADMIN, min_risk=3)} == {
        "VERIFICATION_REQUEST_APPROVED",
        "ATTENDANCE_DISPUTED",
    }
    assert len(trail.list_entries(ADMIN, actor_id=10)) == 2


def test_check_entry(trail):
    entry = trail.record(LECTURER, AuditAction.ATTENDANCE_RECORDED, "attendance_record", 1, now=NOW)

    loaded, intact = trail.check_entry(ADMIN, entry.entry_id)

    assert loaded == entry
    assert intact is True
    with pytest.raises(NotFoundError):
        trail.check_entry(ADMIN, 999)
