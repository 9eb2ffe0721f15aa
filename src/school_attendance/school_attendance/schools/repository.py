from __future__ import annotations

from typing import Optional, Protocol

from .model import SchoolAttendancePolicy


class SchoolRepository(Protocol):
    def get_policy(self, school_id: str) -> Optional[SchoolAttendancePolicy]:
        """Resolved policy for the school, or None when the school does not exist."""

        raise NotImplementedError
