"""Structural and temporal validation of attendance payloads and queries.

Every check runs and reports; nothing short-circuits on the first failure so
callers receive the full list of violations. All functions are pure: the
current time is passed in by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import end_of_tomorrow, parse_iso_datetime
from ..common.validators import (
    DIGITS_RE,
    SECTION_RE,
    ValidationResult,
    Violations,
    check_object_id,
)
from ..core.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_GRADE,
    MAX_MODIFICATION_REASON,
    MAX_PAGE_SIZE,
    MAX_PERIOD,
    MAX_PERIODS_PER_BULK,
    MAX_RANGE_DAYS,
    MAX_STUDENTS_PER_PERIOD,
    MIN_GRADE,
    MIN_PERIOD,
)
from ..core.enums import AttendanceStatus, ReportFormat
from .model import (
    AttendanceEntry,
    AttendanceFilters,
    AttendanceSubmission,
    AttendanceUpdate,
    BulkAttendanceSubmission,
    PeriodFailed,
    PeriodGroup,
)

STATUS_MESSAGE = "Status must be present, absent, late, or excused"


@dataclass(frozen=True)
class ClassAttendanceQuery:
    class_id: str
    date: date
    period: Optional[int] = None


@dataclass(frozen=True)
class StudentHistoryQuery:
    student_id: str
    start_date: date
    end_date: date
    subject_id: Optional[str] = None


@dataclass(frozen=True)
class StatsQuery:
    school_id: str
    start_date: date
    end_date: date
    grade: Optional[int] = None
    section: Optional[str] = None


@dataclass(frozen=True)
class ReportQuery:
    school_id: str
    start_date: date
    end_date: date
    grade: Optional[int] = None
    section: Optional[str] = None
    student_id: Optional[str] = None
    format: ReportFormat = ReportFormat.JSON
    min_attendance: Optional[int] = None


@dataclass(frozen=True)
class FilterQuery:
    filters: AttendanceFilters
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE


# -- field helpers ---------------------------------------------------------


def _datetime_field(errors: Violations, value: Any, path: str, label: str, *, required: bool = True) -> Optional[datetime]:
    if value is None or value == "":
        if required:
            errors.add(path, f"{label} is required")
        return None
    if not isinstance(value, str):
        errors.add(path, f"Invalid {label[0].lower() + label[1:]} format")
        return None
    try:
        return parse_iso_datetime(value)
    except ValueError:
        errors.add(path, f"Invalid {label[0].lower() + label[1:]} format")
        return None


def _period_number(errors: Violations, value: Any, path: str) -> Optional[int]:
    """Period from a JSON body: must be a real integer."""
    if value is None:
        errors.add(path, "Period is required")
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        errors.add(path, "Period must be an integer")
        return None
    # NaN and Infinity are valid JSON for Flask but never a period
    if isinstance(value, float) and not value.is_integer():
        errors.add(path, "Period must be an integer")
        return None
    period = int(value)
    if period < MIN_PERIOD:
        errors.add(path, f"Period must be at least {MIN_PERIOD}")
        return None
    if period > MAX_PERIOD:
        errors.add(path, f"Period cannot exceed {MAX_PERIOD}")
        return None
    return period


def _int_param(errors: Violations, value: Any, path: str, *, label: str, low: int, high: int) -> Optional[int]:
    """Integer from a query string (digits only)."""
    if value is None or value == "":
        return None
    if not isinstance(value, str) or not DIGITS_RE.match(value):
        errors.add(path, f"{label} must be a number")
        return None
    number = int(value)
    if number < low or number > high:
        errors.add(path, f"{label} must be between {low} and {high}")
        return None
    return number


def _status(errors: Violations, value: Any, path: str) -> Optional[AttendanceStatus]:
    try:
        return AttendanceStatus(value)
    except ValueError:
        errors.add(path, STATUS_MESSAGE)
        return None


def _reason(errors: Violations, value: Any, path: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        errors.add(path, "Modification reason must be a string")
        return None
    if len(value) > MAX_MODIFICATION_REASON:
        errors.add(path, f"Modification reason cannot exceed {MAX_MODIFICATION_REASON} characters")
        return None
    return value.strip() or None


def _entries(errors: Violations, value: Any, path: str, *, max_entries: Optional[int]) -> tuple[AttendanceEntry, ...]:
    if not isinstance(value, list):
        errors.add(path, "Attendance data is required")
        return ()
    if not value:
        errors.add(path, "At least one student attendance record is required")
    if max_entries is not None and len(value) > max_entries:
        errors.add(path, f"Cannot mark attendance for more than {max_entries} students at once")

    entries: list[AttendanceEntry] = []
    seen: set[str] = set()
    for i, item in enumerate(value):
        item_path = f"{path}.{i}"
        if not isinstance(item, Mapping):
            errors.add(item_path, "Attendance entry must be an object")
            continue
        student_id = check_object_id(errors, item.get("studentId"), f"{item_path}.studentId", "Student ID")
        status = _status(errors, item.get("status"), f"{item_path}.status")
        if student_id is not None:
            if student_id in seen:
                errors.add(f"{item_path}.studentId", "Duplicate student ID in attendance data")
                continue
            seen.add(student_id)
        if student_id is not None and status is not None:
            entries.append(AttendanceEntry(student_id=student_id, status=status))
    return tuple(entries)


def _check_not_beyond_tomorrow(errors: Violations, value: Optional[datetime], now: datetime) -> None:
    if value is not None and value > end_of_tomorrow(now):
        errors.add("date", "Cannot mark attendance for dates beyond tomorrow")


def _range(
    errors: Violations, args: Mapping[str, Any], *, max_days: Optional[int]
) -> tuple[Optional[datetime], Optional[datetime]]:
    start = _datetime_field(errors, args.get("startDate"), "startDate", "Start date")
    end = _datetime_field(errors, args.get("endDate"), "endDate", "End date")
    if start is not None and end is not None:
        if end < start:
            errors.add("endDate", "End date must be after start date")
        elif max_days is not None and (end - start).total_seconds() / 86400 > max_days:
            errors.add("endDate", f"Date range cannot exceed {max_days} days")
    return start, end


def _section(errors: Violations, value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if not isinstance(value, str) or not SECTION_RE.match(value):
        errors.add("section", "Section must be a single uppercase letter")
        return None
    return value


def _body(payload: Any) -> tuple[Violations, Mapping[str, Any]]:
    errors = Violations()
    if not isinstance(payload, Mapping):
        errors.add("body", "Request body must be a JSON object")
        return errors, {}
    return errors, payload


# -- submissions -----------------------------------------------------------


def validate_submission(payload: Any, *, now: datetime) -> ValidationResult[AttendanceSubmission]:
    errors, body = _body(payload)

    class_id = check_object_id(errors, body.get("classId"), "classId", "Class ID")
    subject_id = check_object_id(errors, body.get("subjectId"), "subjectId", "Subject ID")
    when = _datetime_field(errors, body.get("date"), "date", "Date")
    _check_not_beyond_tomorrow(errors, when, now)
    period = _period_number(errors, body.get("period"), "period")
    entries = _entries(errors, body.get("attendanceData"), "attendanceData", max_entries=MAX_STUDENTS_PER_PERIOD)
    reason = _reason(errors, body.get("modificationReason"), "modificationReason")

    if errors:
        return errors.result()
    return errors.result(
        AttendanceSubmission(
            class_id=class_id,
            subject_id=subject_id,
            date=when.date(),
            period=period,
            entries=entries,
            modification_reason=reason,
        )
    )


def validate_bulk_submission(payload: Any, *, now: datetime) -> ValidationResult[BulkAttendanceSubmission]:
    """Validate a multi-period submission.

    Request-level problems (ids, date, period count, duplicate periods) reject
    the whole request. Problems inside one period group only fail that group.
    """
    errors, body = _body(payload)

    class_id = check_object_id(errors, body.get("classId"), "classId", "Class ID")
    subject_id = check_object_id(errors, body.get("subjectId"), "subjectId", "Subject ID")
    when = _datetime_field(errors, body.get("date"), "date", "Date")
    _check_not_beyond_tomorrow(errors, when, now)
    reason = _reason(errors, body.get("modificationReason"), "modificationReason")

    groups = body.get("periods")
    valid: list[PeriodGroup] = []
    failed: list[PeriodFailed] = []
    if not isinstance(groups, list):
        errors.add("periods", "Periods are required")
        groups = []
    elif not groups:
        errors.add("periods", "At least one period is required")
    elif len(groups) > MAX_PERIODS_PER_BULK:
        errors.add("periods", f"Cannot mark attendance for more than {MAX_PERIODS_PER_BULK} periods")

    seen_periods: set[int] = set()
    for i, group in enumerate(groups):
        path = f"periods.{i}"
        group_errors = Violations()
        if not isinstance(group, Mapping):
            group_errors.add(path, "Period group must be an object")
            failed.append(PeriodFailed(period=None, violations=tuple(group_errors.items)))
            continue

        period = _period_number(group_errors, group.get("period"), f"{path}.period")
        if period is not None:
            if period in seen_periods:
                errors.add(f"{path}.period", f"Duplicate period {period} in submission")
            seen_periods.add(period)
        entries = _entries(
            group_errors, group.get("attendanceData"), f"{path}.attendanceData", max_entries=MAX_STUDENTS_PER_PERIOD
        )

        if group_errors:
            failed.append(PeriodFailed(period=period, violations=tuple(group_errors.items)))
        else:
            valid.append(PeriodGroup(period=period, entries=entries))

    if errors:
        return errors.result()
    return errors.result(
        BulkAttendanceSubmission(
            class_id=class_id,
            subject_id=subject_id,
            date=when.date(),
            periods=tuple(valid),
            failed_periods=tuple(failed),
            modification_reason=reason,
        )
    )


def validate_update(payload: Any) -> ValidationResult[AttendanceUpdate]:
    errors, body = _body(payload)
    status = None
    if body.get("status") is not None:
        status = _status(errors, body.get("status"), "status")
    reason = _reason(errors, body.get("modificationReason"), "modificationReason")
    return errors.result(AttendanceUpdate(status=status, modification_reason=reason))


def validate_record_id(record_id: Any) -> ValidationResult[str]:
    errors = Violations()
    value = check_object_id(errors, record_id, "id", "Attendance ID")
    return errors.result(value)


# -- queries ---------------------------------------------------------------


def validate_class_query(args: Mapping[str, Any]) -> ValidationResult[ClassAttendanceQuery]:
    errors = Violations()
    class_id = check_object_id(errors, args.get("classId"), "classId", "Class ID")
    when = _datetime_field(errors, args.get("date"), "date", "Date")
    period = _int_param(errors, args.get("period"), "period", label="Period", low=MIN_PERIOD, high=MAX_PERIOD)
    if errors:
        return errors.result()
    return errors.result(ClassAttendanceQuery(class_id=class_id, date=when.date(), period=period))


def validate_student_history_query(student_id: Any, args: Mapping[str, Any]) -> ValidationResult[StudentHistoryQuery]:
    errors = Violations()
    sid = check_object_id(errors, student_id, "studentId", "Student ID")
    start, end = _range(errors, args, max_days=None)
    subject_id = check_object_id(errors, args.get("subjectId"), "subjectId", "Subject ID", required=False)
    if errors:
        return errors.result()
    return errors.result(
        StudentHistoryQuery(student_id=sid, start_date=start.date(), end_date=end.date(), subject_id=subject_id)
    )


def validate_stats_query(school_id: Any, args: Mapping[str, Any]) -> ValidationResult[StatsQuery]:
    errors = Violations()
    sid = check_object_id(errors, school_id, "schoolId", "School ID")
    start, end = _range(errors, args, max_days=MAX_RANGE_DAYS)
    grade = _int_param(errors, args.get("grade"), "grade", label="Grade", low=MIN_GRADE, high=MAX_GRADE)
    section = _section(errors, args.get("section"))
    if errors:
        return errors.result()
    return errors.result(
        StatsQuery(school_id=sid, start_date=start.date(), end_date=end.date(), grade=grade, section=section)
    )


def validate_report_query(school_id: Any, args: Mapping[str, Any]) -> ValidationResult[ReportQuery]:
    errors = Violations()
    sid = check_object_id(errors, school_id, "schoolId", "School ID")
    start, end = _range(errors, args, max_days=MAX_RANGE_DAYS)
    grade = _int_param(errors, args.get("grade"), "grade", label="Grade", low=MIN_GRADE, high=MAX_GRADE)
    section = _section(errors, args.get("section"))
    student_id = check_object_id(errors, args.get("studentId"), "studentId", "Student ID", required=False)

    fmt = ReportFormat.JSON
    if args.get("format"):
        try:
            fmt = ReportFormat(args.get("format"))
        except ValueError:
            errors.add("format", "Format must be json, csv, or pdf")
    min_attendance = _int_param(
        errors, args.get("minAttendance"), "minAttendance", label="Minimum attendance", low=0, high=100
    )

    if errors:
        return errors.result()
    return errors.result(
        ReportQuery(
            school_id=sid,
            start_date=start.date(),
            end_date=end.date(),
            grade=grade,
            section=section,
            student_id=student_id,
            format=fmt,
            min_attendance=min_attendance,
        )
    )


def validate_student_report_query(student_id: Any, args: Mapping[str, Any]) -> ValidationResult[StudentHistoryQuery]:
    errors = Violations()
    sid = check_object_id(errors, student_id, "studentId", "Student ID")
    start, end = _range(errors, args, max_days=MAX_RANGE_DAYS)
    if errors:
        return errors.result()
    return errors.result(StudentHistoryQuery(student_id=sid, start_date=start.date(), end_date=end.date()))


def validate_filter_query(args: Mapping[str, Any]) -> ValidationResult[FilterQuery]:
    """Paginated search over records; every filter is optional."""
    errors = Violations()
    ids = {}
    for name, label in (
        ("schoolId", "School ID"),
        ("studentId", "Student ID"),
        ("classId", "Class ID"),
        ("subjectId", "Subject ID"),
        ("markedBy", "Teacher ID"),
    ):
        ids[name] = check_object_id(errors, args.get(name), name, label, required=False)

    status = None
    if args.get("status"):
        status = _status(errors, args.get("status"), "status")
    period = _int_param(errors, args.get("period"), "period", label="Period", low=MIN_PERIOD, high=MAX_PERIOD)
    on_date = _datetime_field(errors, args.get("date"), "date", "Date", required=False)

    start = end = None
    if args.get("startDate") or args.get("endDate"):
        start, end = _range(errors, args, max_days=None)

    page = _int_param(errors, args.get("page"), "page", label="Page", low=1, high=10**6) or 1
    limit = (
        _int_param(errors, args.get("limit"), "limit", label="Limit", low=1, high=MAX_PAGE_SIZE) or DEFAULT_PAGE_SIZE
    )

    if errors:
        return errors.result()
    filters = AttendanceFilters(
        school_id=ids["schoolId"],
        student_id=ids["studentId"],
        class_id=ids["classId"],
        subject_id=ids["subjectId"],
        marked_by=ids["markedBy"],
        status=status,
        period=period,
        date=on_date.date() if on_date else None,
        start_date=start.date() if start else None,
        end_date=end.date() if end else None,
    )
    return errors.result(FilterQuery(filters=filters, page=page, limit=limit))
