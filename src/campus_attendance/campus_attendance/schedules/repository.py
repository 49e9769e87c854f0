from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import ScheduledSession


class ScheduleRepository(Protocol):
    def get_by_id(self, schedule_id: int) -> Optional[ScheduledSession]:
        raise NotImplementedError

    def list_for_lecturer(self, lecturer_id: int) -> Sequence[ScheduledSession]:
        raise NotImplementedError
