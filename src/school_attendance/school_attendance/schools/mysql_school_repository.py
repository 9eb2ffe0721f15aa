from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import SchoolAttendancePolicy
from .repository import SchoolRepository


class MySQLSchoolRepository(SchoolRepository):
    """Reads per-school attendance settings; NULL columns fall back to ``defaults``."""

    def __init__(self, conn_factory: DatabaseConnection, *, defaults: SchoolAttendancePolicy | None = None):
        self._conn_factory = conn_factory
        self._defaults = defaults or SchoolAttendancePolicy()

    def get_policy(self, school_id: str) -> Optional[SchoolAttendancePolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT attendance_grace_period, attendance_lock_after_days, max_attendance_edit_hours
                FROM schools
                WHERE school_id=%s
                """,
                (school_id,),
            )
            r = fetchone(cur)
            if not r:
                return None

            def pick(column: str, fallback: int) -> int:
                value = r.get(column)
                return fallback if value is None else int(value)

            return SchoolAttendancePolicy(
                attendance_grace_period=pick("attendance_grace_period", self._defaults.attendance_grace_period),
                attendance_lock_after_days=pick("attendance_lock_after_days", self._defaults.attendance_lock_after_days),
                max_attendance_edit_hours=pick("max_attendance_edit_hours", self._defaults.max_attendance_edit_hours),
            )
