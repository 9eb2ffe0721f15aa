from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_GRACE_PERIOD_MINUTES, DEFAULT_LOCK_AFTER_DAYS, DEFAULT_MAX_EDIT_HOURS
from .database.connection import DBConfig, DatabaseConnection
from .events.mysql_event_repository import MySQLEventRepository
from .events.repository import EventRepository
from .events.service import EventService
from .reports.calculator.standard_calculator import StandardRateCalculator
from .reports.service import AttendanceReportService
from .schools.model import SchoolAttendancePolicy
from .schools.mysql_school_repository import MySQLSchoolRepository
from .schools.repository import SchoolRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    attendance_repo: AttendanceRepository
    schools_repo: SchoolRepository
    users_repo: UserRepository
    events_repo: EventRepository

    attendance_service: AttendanceService
    report_service: AttendanceReportService
    event_service: EventService


def assemble(
    *,
    attendance_repo: AttendanceRepository,
    schools_repo: SchoolRepository,
    users_repo: UserRepository,
    events_repo: EventRepository,
    count_late_as_attended: bool = True,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services over any repository implementations (MySQL or in-memory)."""
    return Container(
        conn=conn,
        attendance_repo=attendance_repo,
        schools_repo=schools_repo,
        users_repo=users_repo,
        events_repo=events_repo,
        attendance_service=AttendanceService(attendance_repo, schools_repo),
        report_service=AttendanceReportService(
            attendance_repo,
            users_repo,
            calculator=StandardRateCalculator(count_late_as_attended=count_late_as_attended),
        ),
        event_service=EventService(events_repo, users_repo),
    )


def build_container(*, db_config: dict, attendance_settings: Optional[dict[str, Any]] = None) -> Container:
    settings = attendance_settings or {}
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    defaults = SchoolAttendancePolicy(
        attendance_grace_period=int(settings.get("grace_period_minutes", DEFAULT_GRACE_PERIOD_MINUTES)),
        attendance_lock_after_days=int(settings.get("lock_after_days", DEFAULT_LOCK_AFTER_DAYS)),
        max_attendance_edit_hours=int(settings.get("max_edit_hours", DEFAULT_MAX_EDIT_HOURS)),
    )

    return assemble(
        attendance_repo=MySQLAttendanceRepository(conn),
        schools_repo=MySQLSchoolRepository(conn, defaults=defaults),
        users_repo=MySQLUserRepository(conn),
        events_repo=MySQLEventRepository(conn),
        count_late_as_attended=bool(settings.get("count_late_as_attended", True)),
        conn=conn,
    )
