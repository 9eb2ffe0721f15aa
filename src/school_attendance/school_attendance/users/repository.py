from __future__ import annotations

from typing import Optional, Protocol

from .model import StudentProfile, Viewer


class UserRepository(Protocol):
    """Repository interface for identities read by the attendance core.

    Note (DIP): services depend on this interface, never on a concrete DB.
    """

    def get_viewer(self, viewer_id: str) -> Optional[Viewer]:
        raise NotImplementedError

    def get_student(self, student_id: str) -> Optional[StudentProfile]:
        raise NotImplementedError
