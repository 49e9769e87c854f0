from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Mapping, Optional, Union

from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from .policy import CLASS_SCOPE, OWN_SCOPE, ROLE_CAPABILITIES, of_class, own


@dataclass(frozen=True)
class AccessFacts:
    """Relationship between the actor and the resource being acted on."""

    is_owner: bool = False
    is_class_member: bool = False


NO_FACTS = AccessFacts()


def _base_capability(capability: str) -> str:
    for scope in (OWN_SCOPE, CLASS_SCOPE):
        suffix = f":{scope}"
        if capability.endswith(suffix):
            return capability[: -len(suffix)]
    return capability


class PermissionEngine:
    """Single authorization source consulted before every transition.

    Resolution order, first match wins:
    1. the role holds the capability outright;
    2. the actor owns the resource and the role holds ``<capability>:own``;
    3. the actor belongs to the class group and the role holds ``<capability>:class``.
    """

    def __init__(self, table: Mapping[Role, FrozenSet[str]] = ROLE_CAPABILITIES):
        self._table = table

    def capabilities_for(self, role: Union[Role, str]) -> FrozenSet[str]:
        try:
            return self._table.get(Role(role), frozenset())
        except ValueError:
            return frozenset()

    def can(self, role: Union[Role, str], capability: str, facts: Optional[AccessFacts] = None) -> bool:
        facts = facts or NO_FACTS
        granted = self.capabilities_for(role)
        base = _base_capability(capability)

        if base in granted:
            return True
        if facts.is_owner and own(base) in granted:
            return True
        if facts.is_class_member and of_class(base) in granted:
            return True
        return False

    def require(self, role: Union[Role, str], capability: str, facts: Optional[AccessFacts] = None) -> None:
        if not self.can(role, capability, facts):
            raise AuthorizationError(f"Not allowed: {capability}", capability=capability)
