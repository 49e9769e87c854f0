from __future__ import annotations

from typing import Protocol, Sequence


class ClassGroupRepository(Protocol):
    """Class-group membership facts used for class-scoped permissions."""

    def list_groups_represented_by(self, user_id: int) -> Sequence[int]:
        raise NotImplementedError

    def is_class_rep(self, *, user_id: int, class_group_id: int) -> bool:
        raise NotImplementedError
