from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...common.datetime_utils import hours_since
from ...core.enums import PolicyDenial
from ...schools.model import SchoolAttendancePolicy
from ..model import AttendanceRecord
from .base import ModificationRule


class EditWindowRule(ModificationRule):
    """Edits are refused once ``max_attendance_edit_hours`` have passed since the original mark."""

    def deny(self, *, record: AttendanceRecord, policy: SchoolAttendancePolicy, now: datetime) -> Optional[PolicyDenial]:
        if hours_since(record.marked_at, now) > policy.max_attendance_edit_hours:
            return PolicyDenial.EDIT_WINDOW_EXPIRED
        return None
