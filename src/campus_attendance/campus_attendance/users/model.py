from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class Actor:
    """Authenticated principal handed over by the identity provider.

    Immutable for the lifetime of a request.
    """

    user_id: int
    role: Role
