from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...common.datetime_utils import age_in_days
from ...core.enums import PolicyDenial
from ...schools.model import SchoolAttendancePolicy
from ..model import AttendanceRecord
from .base import ModificationRule


class LockAgeRule(ModificationRule):
    """Records older than ``attendance_lock_after_days`` calendar days are immutable."""

    def deny(self, *, record: AttendanceRecord, policy: SchoolAttendancePolicy, now: datetime) -> Optional[PolicyDenial]:
        if age_in_days(record.date, now) > policy.attendance_lock_after_days:
            return PolicyDenial.LOCKED_BY_AGE
        return None
