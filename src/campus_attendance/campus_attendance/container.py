from __future__ import annotations

from dataclasses import dataclass

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.repository import AuditRepository
from .audit.service import AuditTrail
from .core.settings import AttendancePolicy
from .database.connection import DBConfig, DatabaseConnection
from .escalations.mysql_request_repository import MySQLVerificationRequestRepository
from .escalations.repository import VerificationRequestRepository
from .escalations.service import EscalationService
from .permissions.engine import PermissionEngine
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.repository import ScheduleRepository
from .users.mysql_class_group_repository import MySQLClassGroupRepository
from .users.repository import ClassGroupRepository


@dataclass(frozen=True)
class Container:
    policy: AttendancePolicy
    permissions: PermissionEngine

    schedules_repo: ScheduleRepository
    class_groups_repo: ClassGroupRepository
    attendance_repo: AttendanceRepository
    requests_repo: VerificationRequestRepository
    audit_repo: AuditRepository

    audit_trail: AuditTrail
    attendance_service: AttendanceService
    escalation_service: EscalationService


def assemble(
    *,
    policy: AttendancePolicy,
    schedules_repo: ScheduleRepository,
    class_groups_repo: ClassGroupRepository,
    attendance_repo: AttendanceRepository,
    requests_repo: VerificationRequestRepository,
    audit_repo: AuditRepository,
) -> Container:
    """Wire services over any set of repositories (MySQL in the app, in-memory in tests)."""

    permissions = PermissionEngine()
    audit_trail = AuditTrail(audit_repo, permissions=permissions)
    attendance_service = AttendanceService(
        attendance_repo,
        schedules_repo,
        class_groups_repo,
        audit_trail,
        strategy_factory=AttendanceStrategyFactory.from_policy(policy),
        permissions=permissions,
    )
    escalation_service = EscalationService(
        requests_repo,
        attendance_repo,
        audit_trail,
        permissions=permissions,
    )

    return Container(
        policy=policy,
        permissions=permissions,
        schedules_repo=schedules_repo,
        class_groups_repo=class_groups_repo,
        attendance_repo=attendance_repo,
        requests_repo=requests_repo,
        audit_repo=audit_repo,
        audit_trail=audit_trail,
        attendance_service=attendance_service,
        escalation_service=escalation_service,
    )


def build_container(*, db_config: dict, policy: AttendancePolicy | None = None) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    return assemble(
        policy=policy or AttendancePolicy(),
        schedules_repo=MySQLScheduleRepository(conn),
        class_groups_repo=MySQLClassGroupRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        requests_repo=MySQLVerificationRequestRepository(conn),
        audit_repo=MySQLAuditRepository(conn),
    )
