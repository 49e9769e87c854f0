from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from ..common.datetime_utils import on_day
from ..core.enums import DeliveryMode


@dataclass(frozen=True)
class ScheduledSession:
    """A recurring timetable slot. Read-only to the attendance core."""

    schedule_id: int
    course_code: str
    lecturer_id: int
    class_group_id: int
    day_of_week: int
    start_time: time
    end_time: time
    mode: DeliveryMode
    location: Optional[str] = None
    meeting_link: Optional[str] = None

    def window_on(self, day: date) -> tuple[datetime, datetime]:
        """Concrete (start, end) of this slot on a calendar day.

        A slot whose end time is not after its start time ends on the next day.
        """
        start, end = on_day(day, self.start_time), on_day(day, self.end_time)
        if end <= start:
            end += timedelta(days=1)
        return start, end
