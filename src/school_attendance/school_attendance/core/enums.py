from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role tags carried by viewers, staff identities and event audiences."""

    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"
    ACCOUNTANT = "accountant"


class AttendanceStatus(str, Enum):
    """Attendance mark stored per (class, subject, date, period, student)."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class PolicyDenial(str, Enum):
    """Why an existing record may no longer be modified."""

    LOCKED_BY_AGE = "LockedByAge"
    EDIT_WINDOW_EXPIRED = "EditWindowExpired"


class ReportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"
    PDF = "pdf"
