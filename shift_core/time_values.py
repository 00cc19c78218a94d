"""Time-of-day values shared by the interval, policy and lifecycle modules.

Accepts 24-hour ``HH:MM`` and 12-hour ``HH:MM AM/PM`` text and normalizes
both to a minute offset from midnight. Two values compare equal when their
minute offsets match, whatever text they were parsed from.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import time

from .errors import InvalidTimeFormat

MINUTES_PER_DAY = 24 * 60

_TIME_RE = re.compile(r"^(?P<hour>\d{1,2}):(?P<minute>\d{2})(?:\s?(?P<meridiem>[AaPp][Mm]))?$", re.ASCII)


@dataclass(frozen=True, order=True)
class TimeValue:
    minutes: int

    def __post_init__(self) -> None:
        if isinstance(self.minutes, bool) or not isinstance(self.minutes, int):
            raise InvalidTimeFormat(self.minutes, "minute offset must be an integer")
        if not 0 <= self.minutes < MINUTES_PER_DAY:
            raise InvalidTimeFormat(self.minutes, "minute offset must be within 0..1439")

    @classmethod
    def parse(cls, value: TimeValue | time | str | None) -> TimeValue:
        if isinstance(value, TimeValue):
            return value
        if isinstance(value, time):
            return cls(value.hour * 60 + value.minute)
        if not isinstance(value, str):
            raise InvalidTimeFormat(value, "expected HH:MM or HH:MM AM/PM")

        match = _TIME_RE.match(value.strip())
        if match is None:
            raise InvalidTimeFormat(value, "expected HH:MM or HH:MM AM/PM")

        hour = int(match["hour"])
        minute = int(match["minute"])
        meridiem = match["meridiem"]
        if minute > 59:
            raise InvalidTimeFormat(value, "minute out of range")

        if meridiem is None:
            if hour > 23:
                raise InvalidTimeFormat(value, "hour out of range")
        else:
            if not 1 <= hour <= 12:
                raise InvalidTimeFormat(value, "12-hour clock hour must be 1..12")
            hour = hour % 12
            if meridiem.upper() == "PM":
                hour += 12

        return cls(hour * 60 + minute)

    @property
    def hour(self) -> int:
        return self.minutes // 60

    @property
    def minute(self) -> int:
        return self.minutes % 60

    def to_24h(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"

    def to_12h(self) -> str:
        suffix = "PM" if self.hour >= 12 else "AM"
        hour = self.hour % 12 or 12
        return f"{hour:02d}:{self.minute:02d} {suffix}"

    def __str__(self) -> str:
        return self.to_24h()

