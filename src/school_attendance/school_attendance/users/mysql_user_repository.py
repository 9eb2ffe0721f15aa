from __future__ import annotations

from typing import Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import StudentProfile, Viewer
from .repository import UserRepository


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_viewer(self, viewer_id: str) -> Optional[Viewer]:
        # Students carry grade/section through their class; other roles have none.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.user_id, u.role, u.school_id, c.grade, c.section
                FROM users u
                LEFT JOIN students s ON s.user_id = u.user_id
                LEFT JOIN classes c ON c.class_id = s.class_id
                WHERE u.user_id=%s AND u.is_active=1
                """,
                (viewer_id,),
            )
            row = fetchone(cur)
            if not row:
                return None
            return Viewer(
                viewer_id=row["user_id"],
                role=Role(row["role"]),
                school_id=row["school_id"],
                grade=int(row["grade"]) if row.get("grade") is not None else None,
                section=row.get("section"),
            )

    def get_student(self, student_id: str) -> Optional[StudentProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT s.student_id, s.school_id, s.full_name, s.roll_number, c.grade, c.section
                FROM students s
                JOIN classes c ON c.class_id = s.class_id
                WHERE s.student_id=%s
                """,
                (student_id,),
            )
            row = fetchone(cur)
            if not row:
                return None
            return StudentProfile(
                student_id=row["student_id"],
                school_id=row["school_id"],
                full_name=row["full_name"],
                roll_number=int(row.get("roll_number") or 0),
                grade=int(row["grade"]),
                section=row["section"],
            )
