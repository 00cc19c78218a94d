"""Shift duration and overlap over time-of-day intervals.

An interval is half-open, ``[start, end)``. When ``end`` is not after
``start`` the interval runs past midnight into the next day. Overlap is
decided on a doubled 2880-minute timeline (the calendar day plus a virtual
next day), so overnight intervals need no special casing.
"""

from __future__ import annotations

from dataclasses import dataclass

from .time_values import MINUTES_PER_DAY, TimeValue

# (offset_a, offset_b) day placements compared on the doubled timeline.
_DAY_PAIRINGS = ((0, 0), (0, 1), (1, 0))


@dataclass(frozen=True)
class Interval:
    start: TimeValue
    end: TimeValue

    @classmethod
    def from_strings(cls, start: str, end: str) -> Interval:
        return cls(TimeValue.parse(start), TimeValue.parse(end))

    @property
    def duration_minutes(self) -> int:
        diff = self.end.minutes - self.start.minutes
        if diff < 0:
            diff += MINUTES_PER_DAY
        return diff

    @property
    def duration_hours(self) -> float:
        return self.duration_minutes / 60.0

    @property
    def is_overnight(self) -> bool:
        return self.end.minutes < self.start.minutes

    def timeline_span(self, day_offset: int = 0) -> tuple[int, int]:
        """Return ``[start, end)`` on the doubled timeline, shifted by ``day_offset`` days."""
        begin = self.start.minutes + day_offset * MINUTES_PER_DAY
        return begin, begin + self.duration_minutes

    def overlaps(self, other: Interval) -> bool:
        return overlaps(self, other)

    def __str__(self) -> str:
        return f"[{self.start.to_24h()}, {self.end.to_24h()})"


def overlaps(a: Interval, b: Interval) -> bool:
    """Return True if the two intervals share at least one minute.

    Adjacent intervals (``a.end == b.start``) do not overlap. A zero-length
    interval overlaps nothing.
    """
    if a.duration_minutes == 0 or b.duration_minutes == 0:
        return False
    for offset_a, offset_b in _DAY_PAIRINGS:
        a0, a1 = a.timeline_span(offset_a)
        b0, b1 = b.timeline_span(offset_b)
        if a0 < b1 and b0 < a1:
            return True
    return False


def calc_shift_hours(start: str, end: str) -> float:
    """Calculate duration for a shift in decimal hours."""
    return Interval.from_strings(start, end).duration_hours


def time_overlap(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """Return True if two time ranges overlap (supports overnight ranges)."""
    return overlaps(Interval.from_strings(start_a, end_a), Interval.from_strings(start_b, end_b))
