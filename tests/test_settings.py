from types import SimpleNamespace

from config import get_settings_module
from src.campus_attendance.campus_attendance.core import constants
from src.campus_attendance.campus_attendance.core.settings import AttendancePolicy, load_policy


def test_missing_settings_fall_back_to_defaults():
    assert load_policy(SimpleNamespace()) == AttendancePolicy()
    assert AttendancePolicy().min_duration_ratio == constants.DEFAULT_VIRTUAL_MIN_DURATION_RATIO


def test_policy_reads_settings_module():
    settings = SimpleNamespace(
        CAMPUS_LATITUDE="6.67",
        CAMPUS_LONGITUDE="-1.57",
        CAMPUS_RADIUS_METERS="500",
        VIRTUAL_GRACE_BEFORE_MINUTES="10",
        VIRTUAL_GRACE_AFTER_MINUTES="5",
        VIRTUAL_MIN_DURATION_RATIO="0.5",
        VIRTUAL_ALLOWED_MEETING_HOSTS=" Zoom.us, meet.google.com ,,",
    )

    policy = load_policy(settings)

    assert policy.campus_latitude == 6.67
    assert policy.campus_radius_meters == 500.0
    assert policy.grace_before_minutes == 10
    assert policy.grace_after_minutes == 5
    assert policy.min_duration_ratio == 0.5
    assert policy.allowed_meeting_hosts == ("zoom.us", "meet.google.com")


def test_hosts_accept_a_list():
    policy = load_policy(SimpleNamespace(VIRTUAL_ALLOWED_MEETING_HOSTS=["teams.microsoft.com", ""]))
    assert policy.allowed_meeting_hosts == ("teams.microsoft.com",)


def test_settings_module_from_env(monkeypatch):
    monkeypatch.setenv("APP_ENV", "prod")
    assert get_settings_module() == "config.production"
    monkeypatch.setenv("APP_ENV", "test")
    assert get_settings_module() == "config.testing"
    monkeypatch.delenv("APP_ENV")
    assert get_settings_module() == "config.development"
