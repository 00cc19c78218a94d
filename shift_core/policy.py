"""Field-level validation and duration bounds for shift candidates."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from .errors import DurationOutOfRange, InvalidDate, MissingField, ZeroDurationShift
from .intervals import Interval
from .time_values import TimeValue

DEFAULT_MIN_HOURS = 4.0
DEFAULT_MAX_HOURS = 12.0

REQUIRED_FIELDS = ("employee_ref", "calendar_date", "start_time", "end_time")


@dataclass(frozen=True)
class ValidationResult:
    employee_ref: str
    calendar_date: date
    interval: Interval
    duration_hours: float


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_calendar_date(value: Any) -> date:
    """Coerce a ``date`` or ``YYYY-MM-DD`` string into a timezone-naive calendar day."""
    if isinstance(value, datetime):
        raise InvalidDate(value)
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDate(value)
    text = value.strip()
    if len(text) != 10:
        raise InvalidDate(value)
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise InvalidDate(value) from exc


class ShiftPolicy:
    """Validates a shift candidate, short-circuiting on the first failing rule.

    Rules, in order: required fields, calendar date, time format, non-zero
    duration, duration bounds. ``max_hours=None`` leaves the upper bound open.
    """

    def __init__(self, min_hours: float = DEFAULT_MIN_HOURS, max_hours: float | None = DEFAULT_MAX_HOURS):
        if min_hours <= 0:
            raise ValueError("min_hours must be positive")
        if max_hours is not None and max_hours < min_hours:
            raise ValueError(f"max_hours ({max_hours}) is below min_hours ({min_hours})")
        self.min_hours = float(min_hours)
        self.max_hours = float(max_hours) if max_hours is not None else None

    def validate(self, candidate: Mapping[str, Any]) -> ValidationResult:
        for name in REQUIRED_FIELDS:
            if _is_blank(candidate.get(name)):
                raise MissingField(name)

        calendar_date = parse_calendar_date(candidate["calendar_date"])
        start = TimeValue.parse(candidate["start_time"])
        end = TimeValue.parse(candidate["end_time"])
        if start == end:
            raise ZeroDurationShift(start.to_24h())

        interval = Interval(start, end)
        self.check_duration(interval)
        return ValidationResult(
            employee_ref=str(candidate["employee_ref"]).strip(),
            calendar_date=calendar_date,
            interval=interval,
            duration_hours=round(interval.duration_hours, 2),
        )

    def check_duration(self, interval: Interval) -> None:
        hours = interval.duration_hours
        too_short = hours < self.min_hours
        too_long = self.max_hours is not None and hours > self.max_hours
        if too_short or too_long:
            raise DurationOutOfRange(round(hours, 2), self.min_hours, self.max_hours)
