from __future__ import annotations

from datetime import date

from .intervals import Interval, overlaps
from .models import Shift
from .repository import ShiftRepository


class ConflictDetector:
    """Checks a candidate interval against an employee's existing shifts for one day.

    Adjacent intervals never conflict. Containment, partial overlap at either
    edge and identical intervals always do.
    """

    def __init__(self, repository: ShiftRepository):
        self.repository = repository

    def find_conflicts(
        self,
        employee_ref: str,
        calendar_date: date,
        candidate: Interval,
        exclude_id: int | None = None,
    ) -> list[Shift]:
        existing = self.repository.find_by_employee_and_date(employee_ref, calendar_date, exclude_id)
        return [s for s in existing if overlaps(candidate, s.interval)]

    def has_conflict(
        self,
        employee_ref: str,
        calendar_date: date,
        candidate: Interval,
        exclude_id: int | None = None,
    ) -> bool:
        return bool(self.find_conflicts(employee_ref, calendar_date, candidate, exclude_id))
