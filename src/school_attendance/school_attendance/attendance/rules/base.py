from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ...core.enums import PolicyDenial
from ...schools.model import SchoolAttendancePolicy
from ..model import AttendanceRecord


class ModificationRule(ABC):
    """Strategy Pattern: one independently enforced limit on editing a mark."""

    @abstractmethod
    def deny(self, *, record: AttendanceRecord, policy: SchoolAttendancePolicy, now: datetime) -> Optional[PolicyDenial]:
        """Return the denial reason, or None when the rule is satisfied."""

        raise NotImplementedError
