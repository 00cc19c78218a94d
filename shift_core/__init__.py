"""Shift interval validation and conflict-detection engine."""

from .conflicts import ConflictDetector
from .errors import (
    ConflictError,
    DurationOutOfRange,
    EmployeeNotFound,
    InvalidDate,
    InvalidTimeFormat,
    MissingField,
    NotFoundError,
    ShiftError,
    ShiftValidationError,
    ZeroDurationShift,
)
from .intervals import Interval, calc_shift_hours, overlaps, time_overlap
from .lifecycle import ROLE_ADMIN, ROLE_EMPLOYEE, ShiftLifecycleService, Stage
from .locks import KeyedLockManager
from .models import Shift
from .policy import ShiftPolicy, ValidationResult
from .repository import InMemoryShiftRepository, ShiftRepository
from .time_values import TimeValue

__all__ = [
    "ConflictDetector",
    "ConflictError",
    "DurationOutOfRange",
    "EmployeeNotFound",
    "InMemoryShiftRepository",
    "Interval",
    "InvalidDate",
    "InvalidTimeFormat",
    "KeyedLockManager",
    "MissingField",
    "NotFoundError",
    "ROLE_ADMIN",
    "ROLE_EMPLOYEE",
    "Shift",
    "ShiftError",
    "ShiftLifecycleService",
    "ShiftPolicy",
    "ShiftRepository",
    "ShiftValidationError",
    "Stage",
    "TimeValue",
    "ValidationResult",
    "ZeroDurationShift",
    "calc_shift_hours",
    "overlaps",
    "time_overlap",
]
