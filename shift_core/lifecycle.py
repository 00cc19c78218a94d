"""Create, update, delete and list shifts with double-booking protection.

Every create/update passes the same gates: the caller's input is validated by
:class:`ShiftPolicy`, then checked for overlap by :class:`ConflictDetector`,
then written. The conflict check and the write happen while the
``(employee_ref, calendar_date)`` window lock is held and inside the
repository's ``atomic()`` scope, so two racing requests for overlapping times
cannot both commit. The loser sees the same ``ConflictError`` it would have
seen had it arrived after the winner. A scope that loses to a writer outside
this process (``WriteContention``) is retried from its conflict check.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timezone
from enum import Enum
from time import sleep
from typing import Any, Callable, Protocol, TypeVar

from .conflicts import ConflictDetector
from .errors import ConflictError, EmployeeNotFound, NotFoundError, ShiftError
from .locks import KeyedLockManager
from .models import Shift
from .policy import ShiftPolicy, ValidationResult, parse_calendar_date
from .repository import ShiftRepository, WriteContention
from .time_values import TimeValue

logger = logging.getLogger(__name__)

UTC = timezone.utc

ROLE_ADMIN = "admin"
ROLE_EMPLOYEE = "employee"
ROLES = (ROLE_ADMIN, ROLE_EMPLOYEE)

CONTENTION_RETRIES = 8

T = TypeVar("T")


class Stage(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    CONFLICT_CHECKED = "conflict_checked"
    COMMITTED = "committed"
    REJECTED = "rejected"


class EmployeeDirectory(Protocol):
    def exists(self, employee_ref: str) -> bool: ...


def now_utc_iso() -> str:
    return datetime.now(UTC).replace(microsecond=0).isoformat().replace("+00:00", "Z")


class ShiftLifecycleService:
    def __init__(
        self,
        repository: ShiftRepository,
        *,
        policy: ShiftPolicy | None = None,
        directory: EmployeeDirectory | None = None,
        locks: KeyedLockManager | None = None,
    ):
        self.repository = repository
        self.policy = policy or ShiftPolicy()
        self.detector = ConflictDetector(repository)
        self.directory = directory
        self.locks = locks or KeyedLockManager()

    # -- stage bookkeeping --

    def _stage(self, op: str, stage: Stage, **context: Any) -> None:
        logger.debug("%s -> %s %s", op, stage.value, context)

    def _reject(self, op: str, exc: ShiftError) -> None:
        logger.info("%s -> %s (%s: %s)", op, Stage.REJECTED.value, exc.code, exc.message)

    def _resolve_employee(self, employee_ref: str) -> None:
        if self.directory is not None and not self.directory.exists(employee_ref):
            raise EmployeeNotFound(employee_ref)

    def _check_conflicts(self, op: str, result: ValidationResult, exclude_id: int | None) -> None:
        clashes = self.detector.find_conflicts(
            result.employee_ref, result.calendar_date, result.interval, exclude_id
        )
        if clashes:
            raise ConflictError(
                result.employee_ref,
                result.calendar_date.isoformat(),
                [s.id for s in clashes if s.id is not None],
            )
        self._stage(op, Stage.CONFLICT_CHECKED)

    def _commit(self, op: str, windows: list[tuple[str, date]], body: Callable[[], T]) -> T:
        """Run ``body`` holding the window locks inside one ``atomic()`` scope."""
        for attempt in range(CONTENTION_RETRIES):
            try:
                with self.locks.hold(windows), self.repository.atomic():
                    return body()
            except WriteContention as exc:
                if attempt == CONTENTION_RETRIES - 1:
                    raise
                logger.debug("%s lost a write race (%s), retrying", op, exc)
            sleep(min(0.02 * 2**attempt, 1.0))
        raise RuntimeError("unreachable")

    # -- operations --

    def create_shift(
        self,
        employee_ref: str,
        calendar_date: date | str,
        start_time: TimeValue | str,
        end_time: TimeValue | str,
    ) -> Shift:
        op = f"create[{employee_ref}@{calendar_date}]"
        self._stage(op, Stage.RECEIVED, start=start_time, end=end_time)
        try:
            result = self.policy.validate(
                {
                    "employee_ref": employee_ref,
                    "calendar_date": calendar_date,
                    "start_time": start_time,
                    "end_time": end_time,
                }
            )
            self._stage(op, Stage.VALIDATED, hours=result.duration_hours)
            self._resolve_employee(result.employee_ref)

            def write() -> Shift:
                self._check_conflicts(op, result, exclude_id=None)
                stamp = now_utc_iso()
                return self.repository.insert(
                    Shift(
                        employee_ref=result.employee_ref,
                        calendar_date=result.calendar_date,
                        start_time=result.interval.start,
                        end_time=result.interval.end,
                        duration_hours=result.duration_hours,
                        created_at=stamp,
                        updated_at=stamp,
                    )
                )

            shift = self._commit(op, [(result.employee_ref, result.calendar_date)], write)
        except ShiftError as exc:
            self._reject(op, exc)
            raise

        self._stage(op, Stage.COMMITTED, id=shift.id)
        return shift

    def update_shift(
        self,
        shift_id: int,
        employee_ref: str | None = None,
        calendar_date: date | str | None = None,
        start_time: TimeValue | str | None = None,
        end_time: TimeValue | str | None = None,
    ) -> Shift:
        """Re-validate a shift with the given fields changed; omitted fields keep their stored values.

        The shift is excluded from its own conflict check. Both the old and the
        new window are locked, so moving a shift to another day or employee is
        serialized against creates in either window.
        """
        op = f"update[{shift_id}]"
        self._stage(op, Stage.RECEIVED)
        try:
            existing = self.get_shift(shift_id)
            while True:
                result = self.policy.validate(
                    {
                        "employee_ref": existing.employee_ref if employee_ref is None else employee_ref,
                        "calendar_date": existing.calendar_date if calendar_date is None else calendar_date,
                        "start_time": existing.start_time if start_time is None else start_time,
                        "end_time": existing.end_time if end_time is None else end_time,
                    }
                )
                self._stage(op, Stage.VALIDATED, hours=result.duration_hours)
                if result.employee_ref != existing.employee_ref:
                    self._resolve_employee(result.employee_ref)

                def write() -> Shift | None:
                    current = self.repository.get(shift_id)
                    if current is None:
                        raise NotFoundError(shift_id)
                    if current != existing:
                        return None
                    self._check_conflicts(op, result, exclude_id=shift_id)
                    return self.repository.replace(
                        replace(
                            existing,
                            employee_ref=result.employee_ref,
                            calendar_date=result.calendar_date,
                            start_time=result.interval.start,
                            end_time=result.interval.end,
                            duration_hours=result.duration_hours,
                            updated_at=now_utc_iso(),
                        )
                    )

                windows = [existing.window, (result.employee_ref, result.calendar_date)]
                shift = self._commit(op, windows, write)
                if shift is not None:
                    break
                # Changed by a concurrent update; merge against the fresh row.
                existing = self.get_shift(shift_id)
        except ShiftError as exc:
            self._reject(op, exc)
            raise

        self._stage(op, Stage.COMMITTED, id=shift.id)
        return shift

    def delete_shift(self, shift_id: int) -> None:
        op = f"delete[{shift_id}]"
        try:
            existing = self.get_shift(shift_id)
            if not self._commit(op, [existing.window], lambda: self.repository.remove(shift_id)):
                raise NotFoundError(shift_id)
        except ShiftError as exc:
            self._reject(op, exc)
            raise
        logger.info("Deleted shift %s (%s on %s)", shift_id, existing.employee_ref, existing.calendar_date)

    def get_shift(self, shift_id: int) -> Shift:
        shift = self.repository.get(shift_id)
        if shift is None:
            raise NotFoundError(shift_id)
        return shift

    def list_shifts(
        self,
        employee_ref: str | None = None,
        *,
        role: str = ROLE_ADMIN,
        date_from: date | str | None = None,
        date_to: date | str | None = None,
    ) -> list[Shift]:
        """List shifts sorted by date and start time.

        Admins may list everyone (``employee_ref=None``) or one employee.
        Employees only ever see their own shifts.
        """
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role!r}. Choose from {ROLES}")
        if role == ROLE_EMPLOYEE and not employee_ref:
            raise ValueError("employee callers must pass their own employee_ref")

        lower = parse_calendar_date(date_from) if date_from is not None else None
        upper = parse_calendar_date(date_to) if date_to is not None else None
        if lower and upper and lower > upper:
            raise ValueError("date_from is after date_to")
        return self.repository.list(employee_ref=employee_ref, date_from=lower, date_to=upper)
