from __future__ import annotations

from .base import AttendanceRateCalculator
from ...core.enums import AttendanceStatus


class StandardRateCalculator(AttendanceRateCalculator):
    """Standard rule: present counts as attended; late too unless disabled."""

    def __init__(self, *, count_late_as_attended: bool = True):
        self.count_late_as_attended = bool(count_late_as_attended)

    def is_attended(self, status: AttendanceStatus) -> bool:
        if status == AttendanceStatus.PRESENT:
            return True
        return self.count_late_as_attended and status == AttendanceStatus.LATE
