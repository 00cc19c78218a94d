from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import Any

from .intervals import Interval
from .time_values import TimeValue


@dataclass(frozen=True)
class Shift:
    """One scheduled work period for one employee on one calendar day."""

    employee_ref: str
    calendar_date: date
    start_time: TimeValue
    end_time: TimeValue
    duration_hours: float
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def interval(self) -> Interval:
        return Interval(self.start_time, self.end_time)

    @property
    def window(self) -> tuple[str, date]:
        """The ``(employee_ref, calendar_date)`` conflict window this shift belongs to."""
        return (self.employee_ref, self.calendar_date)

    def with_id(self, shift_id: int) -> Shift:
        return replace(self, id=shift_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "employee_ref": self.employee_ref,
            "date": self.calendar_date.isoformat(),
            "start_time": self.start_time.to_24h(),
            "end_time": self.end_time.to_24h(),
            "start_time_12h": self.start_time.to_12h(),
            "end_time_12h": self.end_time.to_12h(),
            "hours": self.duration_hours,
            "overnight": self.interval.is_overnight,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
