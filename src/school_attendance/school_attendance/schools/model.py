from __future__ import annotations

from dataclasses import dataclass

from ..core.constants import (
    DEFAULT_GRACE_PERIOD_MINUTES,
    DEFAULT_LOCK_AFTER_DAYS,
    DEFAULT_MAX_EDIT_HOURS,
    MAX_GRACE_PERIOD_MINUTES,
)


@dataclass(frozen=True)
class SchoolAttendancePolicy:
    """Attendance settings owned by a school; read-only inside the core.

    ``attendance_grace_period`` is carried for the late-marking rules of the
    timetable and is not evaluated when deciding modifications.
    """

    attendance_grace_period: int = DEFAULT_GRACE_PERIOD_MINUTES
    attendance_lock_after_days: int = DEFAULT_LOCK_AFTER_DAYS
    max_attendance_edit_hours: int = DEFAULT_MAX_EDIT_HOURS

    def __post_init__(self) -> None:
        if self.attendance_lock_after_days < 0:
            raise ValueError("attendance_lock_after_days cannot be negative")
        if self.max_attendance_edit_hours < 0:
            raise ValueError("max_attendance_edit_hours cannot be negative")
        if not 0 <= self.attendance_grace_period <= MAX_GRACE_PERIOD_MINUTES:
            raise ValueError(f"attendance_grace_period must be between 0 and {MAX_GRACE_PERIOD_MINUTES}")
