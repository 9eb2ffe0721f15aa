from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from ...core.enums import AttendanceStatus


class AttendanceRateCalculator(ABC):
    """Calculator interface (Strategy Pattern for attendance percentages)."""

    @abstractmethod
    def is_attended(self, status: AttendanceStatus) -> bool:
        raise NotImplementedError

    def attended(self, statuses: Iterable[AttendanceStatus]) -> int:
        return sum(1 for s in statuses if self.is_attended(s))

    @staticmethod
    def percentage(part: int, total: int) -> int:
        # half-up rounding to whole percents
        return int(part * 100 / total + 0.5) if total > 0 else 0
