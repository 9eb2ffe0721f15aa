from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Viewer:
    """Who is looking at the calendar.

    Note: Pure read-only data resolved from the user/student tables.
    """

    viewer_id: str
    role: Role
    school_id: str
    grade: Optional[int] = None
    section: Optional[str] = None


@dataclass(frozen=True)
class StaffIdentity:
    """Authenticated staff member supplied by the auth collaborator."""

    user_id: str
    school_id: str
    role: Role

    def can_access_school(self, school_id: Optional[str]) -> bool:
        """Superadmins span schools; everyone else is bound to the session school."""
        return self.role == Role.SUPERADMIN or (school_id or "").lower() == self.school_id.lower()


@dataclass(frozen=True)
class StudentProfile:
    student_id: str
    school_id: str
    full_name: str
    roll_number: int
    grade: int
    section: str
