from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class StatusCount:
    status: str
    count: int
    percentage: int


@dataclass(frozen=True)
class GradeStats:
    grade: int
    total_students: int
    total_classes: int
    attended_count: int
    attendance_percentage: int


@dataclass(frozen=True)
class DailyTrend:
    date: date
    total_classes: int
    attendance_percentage: int


@dataclass(frozen=True)
class AttendanceStats:
    total_classes: int
    total_students: int
    present_count: int
    absent_count: int
    late_count: int
    excused_count: int
    attendance_percentage: int
    by_status: list[StatusCount] = field(default_factory=list)
    by_grade: list[GradeStats] = field(default_factory=list)
    daily_trend: list[DailyTrend] = field(default_factory=list)


@dataclass(frozen=True)
class StudentReportRow:
    student_id: str
    student_name: str
    roll_number: int
    grade: int
    section: str
    total_classes: int
    present_classes: int
    absent_classes: int
    late_classes: int
    excused_classes: int
    attendance_percentage: int


@dataclass(frozen=True)
class AttendanceReport:
    rows: list[StudentReportRow]
    summary: dict


@dataclass(frozen=True)
class SubjectAttendance:
    subject_id: str
    subject_name: str
    total_classes: int
    attended_classes: int
    attendance_percentage: int


@dataclass(frozen=True)
class MonthlyAttendance:
    month: str
    year: int
    total_classes: int
    attended_classes: int
    attendance_percentage: int


@dataclass(frozen=True)
class StudentAttendanceReport:
    student: StudentReportRow
    subject_wise: list[SubjectAttendance]
    monthly_trend: list[MonthlyAttendance]
