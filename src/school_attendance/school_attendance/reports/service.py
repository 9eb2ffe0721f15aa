from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import date
from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord, AttendanceReportRow
from ..attendance.repository import AttendanceRepository
from ..core.enums import AttendanceStatus
from ..core.exceptions import AuthorizationError, NotFoundError
from ..users.model import StaffIdentity
from ..users.repository import UserRepository
from .calculator.base import AttendanceRateCalculator
from .calculator.standard_calculator import StandardRateCalculator
from .model import (
    AttendanceReport,
    AttendanceStats,
    DailyTrend,
    GradeStats,
    MonthlyAttendance,
    StatusCount,
    StudentAttendanceReport,
    StudentReportRow,
    SubjectAttendance,
)

logger = logging.getLogger(__name__)

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


class AttendanceReportService:
    """Read side: statistics and report rows over committed marks."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: Optional[UserRepository] = None,
        *,
        calculator: Optional[AttendanceRateCalculator] = None,
    ):
        self._attendance = attendance
        self._users = users
        self._calculator = calculator or StandardRateCalculator()

    def compute_stats(
        self,
        *,
        school_id: str,
        start: date,
        end: date,
        grade: Optional[int] = None,
        section: Optional[str] = None,
    ) -> AttendanceStats:
        rows = self._attendance.get_report_rows(
            start_date=start, end_date=end, school_id=school_id, grade=grade, section=section
        )
        pct = self._calculator.percentage
        counts = Counter(r.status for r in rows)
        total = len(rows)

        by_grade: list[GradeStats] = []
        grade_rows: dict[int, list[AttendanceReportRow]] = defaultdict(list)
        for r in rows:
            grade_rows[r.grade].append(r)
        for g in sorted(grade_rows):
            items = grade_rows[g]
            attended = self._calculator.attended(r.status for r in items)
            by_grade.append(
                GradeStats(
                    grade=g,
                    total_students=len({r.student_id for r in items}),
                    total_classes=len(items),
                    attended_count=attended,
                    attendance_percentage=pct(attended, len(items)),
                )
            )

        daily: dict[date, list[AttendanceStatus]] = defaultdict(list)
        for r in rows:
            daily[r.date].append(r.status)
        daily_trend = [
            DailyTrend(
                date=d,
                total_classes=len(statuses),
                attendance_percentage=pct(self._calculator.attended(statuses), len(statuses)),
            )
            for d, statuses in sorted(daily.items())
        ]

        return AttendanceStats(
            total_classes=total,
            total_students=len({r.student_id for r in rows}),
            present_count=counts[AttendanceStatus.PRESENT],
            absent_count=counts[AttendanceStatus.ABSENT],
            late_count=counts[AttendanceStatus.LATE],
            excused_count=counts[AttendanceStatus.EXCUSED],
            attendance_percentage=pct(self._calculator.attended(r.status for r in rows), total),
            by_status=[StatusCount(s.value, counts[s], pct(counts[s], total)) for s in AttendanceStatus],
            by_grade=by_grade,
            daily_trend=daily_trend,
        )

    def student_history(
        self,
        *,
        student_id: str,
        start: date,
        end: date,
        subject_id: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        return self._attendance.query_student(
            student_id=student_id, start_date=start, end_date=end, subject_id=subject_id
        )

    def build_report(
        self,
        *,
        school_id: str,
        start: date,
        end: date,
        grade: Optional[int] = None,
        section: Optional[str] = None,
        student_id: Optional[str] = None,
        min_attendance: Optional[int] = None,
    ) -> AttendanceReport:
        """Per-student rows; ``min_attendance`` only narrows which rows are returned."""
        query_rows = self._attendance.get_report_rows(
            start_date=start,
            end_date=end,
            school_id=school_id,
            grade=grade,
            section=section,
            student_id=student_id,
        )

        by_student: dict[str, list[AttendanceReportRow]] = defaultdict(list)
        for r in query_rows:
            by_student[r.student_id].append(r)

        rows = [self._student_row(items) for items in by_student.values()]
        if min_attendance is not None:
            rows = [r for r in rows if r.attendance_percentage >= min_attendance]
        rows.sort(key=lambda r: (r.grade, r.section, r.roll_number, r.student_name))

        total_classes = sum(r.total_classes for r in rows)
        attended = sum(self._attended_in_row(r) for r in rows)
        summary = {
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "total_students": len(rows),
            "total_classes": total_classes,
            "attendance_percentage": self._calculator.percentage(attended, total_classes),
            "count_late_as_attended": self._counts_late(),
        }
        return AttendanceReport(rows=rows, summary=summary)

    def student_report(
        self, *, student_id: str, start: date, end: date, staff: Optional[StaffIdentity] = None
    ) -> StudentAttendanceReport:
        if self._users is None:
            raise NotFoundError("Student directory is not configured")
        profile = self._users.get_student(student_id)
        if not profile:
            logger.info("student report requested for unknown student %s", student_id)
            raise NotFoundError("Student not found")
        if staff is not None and not staff.can_access_school(profile.school_id):
            raise AuthorizationError("Student belongs to another school")

        items = self._attendance.get_report_rows(start_date=start, end_date=end, student_id=student_id)
        statuses = Counter(r.status for r in items)
        total = len(items)
        student = StudentReportRow(
            student_id=profile.student_id,
            student_name=profile.full_name,
            roll_number=profile.roll_number,
            grade=profile.grade,
            section=profile.section,
            total_classes=total,
            present_classes=statuses[AttendanceStatus.PRESENT],
            absent_classes=statuses[AttendanceStatus.ABSENT],
            late_classes=statuses[AttendanceStatus.LATE],
            excused_classes=statuses[AttendanceStatus.EXCUSED],
            attendance_percentage=self._calculator.percentage(
                self._calculator.attended(r.status for r in items), total
            ),
        )
        return StudentAttendanceReport(
            student=student,
            subject_wise=self._subject_wise(items),
            monthly_trend=self._monthly_trend(items),
        )

    def _student_row(self, items: list[AttendanceReportRow]) -> StudentReportRow:
        first = items[0]
        statuses = Counter(r.status for r in items)
        attended = self._calculator.attended(r.status for r in items)
        return StudentReportRow(
            student_id=first.student_id,
            student_name=first.student_name,
            roll_number=first.roll_number,
            grade=first.grade,
            section=first.section,
            total_classes=len(items),
            present_classes=statuses[AttendanceStatus.PRESENT],
            absent_classes=statuses[AttendanceStatus.ABSENT],
            late_classes=statuses[AttendanceStatus.LATE],
            excused_classes=statuses[AttendanceStatus.EXCUSED],
            attendance_percentage=self._calculator.percentage(attended, len(items)),
        )

    def _attended_in_row(self, row: StudentReportRow) -> int:
        late = row.late_classes if self._counts_late() else 0
        return row.present_classes + late

    def _counts_late(self) -> bool:
        return self._calculator.is_attended(AttendanceStatus.LATE)

    def _subject_wise(self, items: Sequence[AttendanceReportRow]) -> list[SubjectAttendance]:
        grouped: dict[str, list[AttendanceReportRow]] = defaultdict(list)
        for r in items:
            grouped[r.subject_id].append(r)

        out = []
        for subject_id, rows in grouped.items():
            attended = self._calculator.attended(r.status for r in rows)
            out.append(
                SubjectAttendance(
                    subject_id=subject_id,
                    subject_name=rows[0].subject_name,
                    total_classes=len(rows),
                    attended_classes=attended,
                    attendance_percentage=self._calculator.percentage(attended, len(rows)),
                )
            )
        return out

    def _monthly_trend(self, items: Sequence[AttendanceReportRow]) -> list[MonthlyAttendance]:
        grouped: dict[tuple[int, int], list[AttendanceReportRow]] = defaultdict(list)
        for r in items:
            grouped[(r.date.year, r.date.month)].append(r)

        out = []
        # newest month first
        for (year, month) in sorted(grouped, reverse=True):
            rows = grouped[(year, month)]
            attended = self._calculator.attended(r.status for r in rows)
            out.append(
                MonthlyAttendance(
                    month=MONTH_NAMES[month - 1],
                    year=year,
                    total_classes=len(rows),
                    attended_classes=attended,
                    attendance_percentage=self._calculator.percentage(attended, len(rows)),
                )
            )
        return out
