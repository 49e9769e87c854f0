"""Static role -> capability table.

Scoped grants use a suffix: ``<capability>:own`` applies when the actor owns
the resource, ``<capability>:class`` when the actor represents its class group.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import FrozenSet, Iterable, Mapping

from ..core.enums import Role

OWN_SCOPE = "own"
CLASS_SCOPE = "class"


class Capability:
    ATTENDANCE_CREATE = "attendance:create"
    ATTENDANCE_READ = "attendance:read"
    ATTENDANCE_VERIFY = "attendance:verify"
    ATTENDANCE_SUPERVISE = "attendance:supervise"

    ESCALATION_CREATE = "escalation:create"
    ESCALATION_RESOLVE = "escalation:resolve"
    ESCALATION_READ = "escalation:read"

    AUDIT_READ = "audit:read"
    REPORTS_GENERATE = "reports:generate"
    REPORTS_EXPORT = "reports:export"


def own(capability: str) -> str:
    return f"{capability}:{OWN_SCOPE}"


def of_class(capability: str) -> str:
    return f"{capability}:{CLASS_SCOPE}"


def _crud(resource: str, *actions: str) -> set[str]:
    return {f"{resource}:{a}" for a in actions}


_ALL = ("create", "read", "update", "delete", "list")
_MANAGE = ("create", "read", "update", "list")
_VIEW = ("read", "list")


def _freeze(table: Mapping[Role, Iterable[str]]) -> Mapping[Role, FrozenSet[str]]:
    return MappingProxyType({role: frozenset(caps) for role, caps in table.items()})


ROLE_CAPABILITIES: Mapping[Role, FrozenSet[str]] = _freeze(
    {
        Role.ADMIN: {
            *_crud("user", *_ALL, "import"),
            *_crud("programme", *_ALL),
            *_crud("course", *_ALL),
            *_crud("class_group", *_ALL),
            *_crud("schedule", *_ALL),
            *_crud("building", *_ALL),
            *_crud("classroom", *_ALL),
            Capability.ATTENDANCE_READ,
            Capability.ATTENDANCE_SUPERVISE,
            Capability.ESCALATION_RESOLVE,
            Capability.ESCALATION_READ,
            Capability.AUDIT_READ,
            Capability.REPORTS_GENERATE,
            Capability.REPORTS_EXPORT,
        },
        Role.COORDINATOR: {
            *_crud("user", *_VIEW),
            *_crud("programme", *_MANAGE),
            *_crud("course", *_MANAGE),
            *_crud("class_group", *_MANAGE),
            *_crud("schedule", *_MANAGE),
            *_crud("building", *_MANAGE),
            *_crud("classroom", *_MANAGE),
            Capability.ATTENDANCE_READ,
            Capability.ESCALATION_RESOLVE,
            Capability.ESCALATION_READ,
            Capability.REPORTS_GENERATE,
            Capability.REPORTS_EXPORT,
        },
        Role.LECTURER: {
            own("schedule:read"),
            own(Capability.ATTENDANCE_CREATE),
            own(Capability.ATTENDANCE_READ),
            own(Capability.ESCALATION_RESOLVE),
            own(Capability.ESCALATION_READ),
            "course:read",
            "class_group:read",
        },
        Role.CLASS_REP: {
            of_class(Capability.ATTENDANCE_READ),
            of_class(Capability.ATTENDANCE_VERIFY),
        },
        Role.SUPERVISOR: {
            *_crud("schedule", *_VIEW),
            Capability.ATTENDANCE_READ,
            Capability.ATTENDANCE_SUPERVISE,
            Capability.ESCALATION_CREATE,
            Capability.ESCALATION_READ,
        },
        Role.ONLINE_SUPERVISOR: {
            *_crud("schedule", *_VIEW),
            Capability.ATTENDANCE_READ,
            Capability.ATTENDANCE_SUPERVISE,
        },
    }
)
