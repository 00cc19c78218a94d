"""Error taxonomy for shift validation, conflict detection and lifecycle operations."""

from __future__ import annotations

from typing import Any


class ShiftError(Exception):
    """Base class for every deterministic shift-engine error."""

    code = "shift_error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.details}


class ShiftValidationError(ShiftError):
    code = "validation_error"


class MissingField(ShiftValidationError):
    code = "missing_field"

    def __init__(self, name: str):
        super().__init__(f"Missing required field: {name}", field=name)
        self.field = name


class InvalidDate(ShiftValidationError):
    code = "invalid_date"

    def __init__(self, value: Any):
        super().__init__(f"Invalid calendar date: {value!r} (expected YYYY-MM-DD)", value=str(value))


class InvalidTimeFormat(ShiftValidationError):
    code = "invalid_time_format"

    def __init__(self, value: Any, reason: str = ""):
        msg = f"Invalid time: {value!r}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg, value=str(value))


class ZeroDurationShift(ShiftValidationError):
    code = "zero_duration_shift"

    def __init__(self, value: str):
        super().__init__("Start time and end time cannot be the same", value=value)


class DurationOutOfRange(ShiftValidationError):
    code = "duration_out_of_range"

    def __init__(self, actual: float, min_hours: float, max_hours: float | None):
        if actual < min_hours:
            msg = f"Shift must be at least {min_hours:g} hours long (got {actual:g})"
        else:
            msg = f"Shift cannot be longer than {max_hours:g} hours (got {actual:g})"
        super().__init__(msg, actual=actual, min=min_hours, max=max_hours)
        self.actual = actual
        self.min_hours = min_hours
        self.max_hours = max_hours


class ConflictError(ShiftError):
    """Candidate interval overlaps an existing shift in the same conflict window."""

    code = "conflict"

    def __init__(self, employee_ref: str, calendar_date: str, conflicting_ids: list[int]):
        super().__init__(
            "This shift overlaps with an existing shift for this employee",
            employee_ref=employee_ref,
            date=calendar_date,
            conflicting_ids=conflicting_ids,
        )
        self.conflicting_ids = conflicting_ids


class NotFoundError(ShiftError):
    code = "not_found"

    def __init__(self, shift_id: Any):
        super().__init__(f"No shift found with id {shift_id}", id=shift_id)
        self.shift_id = shift_id


class EmployeeNotFound(ShiftError):
    code = "employee_not_found"

    def __init__(self, employee_ref: str):
        super().__init__(f"No employee found with reference {employee_ref!r}", employee_ref=employee_ref)
        self.employee_ref = employee_ref
