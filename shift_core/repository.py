"""Persistence contract consumed by the lifecycle service, plus an in-memory implementation."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from typing import Iterator, Protocol

from .models import Shift


class WriteContention(RuntimeError):
    """A concurrent commit invalidated the reads of an atomic() scope."""


class ShiftRepository(Protocol):
    def find_by_employee_and_date(
        self, employee_ref: str, calendar_date: date, exclude_id: int | None = None
    ) -> list[Shift]: ...

    def get(self, shift_id: int) -> Shift | None: ...

    def insert(self, shift: Shift) -> Shift: ...

    def replace(self, shift: Shift) -> Shift: ...

    def remove(self, shift_id: int) -> bool: ...

    def list(
        self,
        employee_ref: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[Shift]: ...

    def atomic(self) -> Iterator[None]:
        """Context manager spanning a conflict check and its write.

        Raises WriteContention when another writer committed after the scope
        read; nothing inside the scope was applied and the caller may retry.
        """
        ...

def sort_key(shift: Shift) -> tuple[date, int, int]:
    return (shift.calendar_date, shift.start_time.minutes, shift.id or 0)


class InMemoryShiftRepository:
    """Dict-backed repository. Thread-safe; ids are assigned sequentially from 1."""

    def __init__(self) -> None:
        self._rows: dict[int, Shift] = {}
        self._next_id = 1
        self._guard = threading.RLock()

    @contextmanager
    def atomic(self) -> Iterator[None]:
        # Per-window locks in the service already serialize writers in one process.
        yield

    def find_by_employee_and_date(
        self, employee_ref: str, calendar_date: date, exclude_id: int | None = None
    ) -> list[Shift]:
        with self._guard:
            return sorted(
                (
                    s for s in self._rows.values()
                    if s.employee_ref == employee_ref
                    and s.calendar_date == calendar_date
                    and s.id != exclude_id
                ),
                key=sort_key,
            )

    def get(self, shift_id: int) -> Shift | None:
        with self._guard:
            return self._rows.get(shift_id)

    def insert(self, shift: Shift) -> Shift:
        with self._guard:
            stored = shift.with_id(self._next_id)
            self._rows[stored.id] = stored
            self._next_id += 1
            return stored

    def replace(self, shift: Shift) -> Shift:
        with self._guard:
            if shift.id not in self._rows:
                raise KeyError(f"shift not found: {shift.id}")
            stored = replace(shift, created_at=self._rows[shift.id].created_at)
            self._rows[shift.id] = stored
            return stored

    def remove(self, shift_id: int) -> bool:
        with self._guard:
            return self._rows.pop(shift_id, None) is not None

    def list(
        self,
        employee_ref: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[Shift]:
        with self._guard:
            rows = list(self._rows.values())
        if employee_ref is not None:
            rows = [s for s in rows if s.employee_ref == employee_ref]
        if date_from is not None:
            rows = [s for s in rows if s.calendar_date >= date_from]
        if date_to is not None:
            rows = [s for s in rows if s.calendar_date <= date_to]
        return sorted(rows, key=sort_key)
