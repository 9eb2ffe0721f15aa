from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Optional

import mysql.connector

from src.school_attendance.school_attendance.attendance.model import (
    AttendanceChange,
    AttendanceFilters,
    AttendanceRecord,
    AttendanceReportRow,
    Page,
)
from src.school_attendance.school_attendance.core.enums import AttendanceStatus
from src.school_attendance.school_attendance.schools.model import SchoolAttendancePolicy
from src.school_attendance.school_attendance.users.model import StudentProfile, Viewer


def oid(n: int) -> str:
    return f"{n:024x}"


SCHOOL = oid(1)
OTHER_SCHOOL = oid(2)
CLASS_A = oid(10)
SUBJECT_MATH = oid(20)
SUBJECT_SCIENCE = oid(21)
TEACHER = oid(30)


class InMemoryAttendance:
    def __init__(self, students: Optional[dict[str, StudentProfile]] = None, subjects: Optional[dict[str, str]] = None):
        self.records: dict[str, AttendanceRecord] = {}
        self.changes: list[AttendanceChange] = []
        self.students = students or {}
        self.subjects = subjects or {}
        self.apply_calls = 0

    def add(self, record: AttendanceRecord) -> AttendanceRecord:
        self.records[record.record_id] = record
        return record

    def get_by_id(self, record_id: str) -> Optional[AttendanceRecord]:
        return self.records.get(record_id)

    def find_by_keys(self, *, class_id, subject_id, on_date, period, student_ids):
        wanted = set(student_ids)
        return {
            r.student_id: r
            for r in self.records.values()
            if r.class_id == class_id
            and r.subject_id == subject_id
            and r.date == on_date
            and r.period == period
            and r.student_id in wanted
        }

    def apply_period(self, *, inserts, updates, changes) -> None:
        self.apply_calls += 1
        for r in list(inserts) + list(updates):
            self.records[r.record_id] = r
        self.changes.extend(changes)

    def apply_update(self, *, record, change) -> AttendanceRecord:
        self.records[record.record_id] = record
        self.changes.append(change)
        return record

    def query_class(self, *, class_id, on_date, period=None):
        items = [
            r
            for r in self.records.values()
            if r.class_id == class_id and r.date == on_date and (period is None or r.period == period)
        ]
        return sorted(items, key=lambda r: (r.period, r.student_id))

    def query_student(self, *, student_id, start_date, end_date, subject_id=None):
        items = [
            r
            for r in self.records.values()
            if r.student_id == student_id
            and start_date <= r.date <= end_date
            and (subject_id is None or r.subject_id == subject_id)
        ]
        return sorted(items, key=lambda r: (r.date, -r.period), reverse=True)

    def get_report_rows(self, *, start_date, end_date, school_id=None, grade=None, section=None, student_id=None):
        rows = []
        for r in self.records.values():
            profile = self.students.get(r.student_id)
            if profile is None or not (start_date <= r.date <= end_date):
                continue
            if school_id is not None and r.school_id != school_id:
                continue
            if grade is not None and profile.grade != grade:
                continue
            if section is not None and profile.section != section:
                continue
            if student_id is not None and r.student_id != student_id:
                continue
            rows.append(
                AttendanceReportRow(
                    record_id=r.record_id,
                    student_id=r.student_id,
                    student_name=profile.full_name,
                    roll_number=profile.roll_number,
                    grade=profile.grade,
                    section=profile.section,
                    subject_id=r.subject_id,
                    subject_name=self.subjects.get(r.subject_id, "-"),
                    date=r.date,
                    period=r.period,
                    status=r.status,
                )
            )
        return rows

    def search(self, *, filters: AttendanceFilters, page: int, limit: int) -> Page:
        def keep(r: AttendanceRecord) -> bool:
            checks = (
                (filters.school_id, r.school_id),
                (filters.student_id, r.student_id),
                (filters.class_id, r.class_id),
                (filters.subject_id, r.subject_id),
                (filters.marked_by, r.marked_by),
                (filters.status, r.status),
                (filters.period, r.period),
                (filters.date, r.date),
            )
            if any(want is not None and want != got for want, got in checks):
                return False
            if filters.start_date and filters.end_date:
                return filters.start_date <= r.date <= filters.end_date
            return True

        items = sorted(filter(keep, self.records.values()), key=lambda r: (r.date, -r.period), reverse=True)
        start = (page - 1) * limit
        return Page(items=items[start : start + limit], total=len(items), page=page, limit=limit)

    def list_changes(self, record_id: str):
        return [c for c in self.changes if c.record_id == record_id]


class InMemorySchools:
    def __init__(self, policies: Optional[dict[str, SchoolAttendancePolicy]] = None):
        self.policies = policies if policies is not None else {SCHOOL: SchoolAttendancePolicy()}

    def get_policy(self, school_id: str) -> Optional[SchoolAttendancePolicy]:
        return self.policies.get(school_id)


class InMemoryUsers:
    def __init__(self, viewers=None, students=None):
        self.viewers: dict[str, Viewer] = viewers or {}
        self.students: dict[str, StudentProfile] = students or {}

    def get_viewer(self, viewer_id: str) -> Optional[Viewer]:
        return self.viewers.get(viewer_id)

    def get_student(self, student_id: str) -> Optional[StudentProfile]:
        return self.students.get(student_id)


class InMemoryEvents:
    def __init__(self, events=None):
        self.events = list(events or [])

    def query_events(self, *, school_id: str, start_date: date, end_date: date):
        items = [e for e in self.events if e.school_id == school_id and start_date <= e.date <= end_date]
        return sorted(items, key=lambda e: e.date)


def make_record(
    n: int,
    *,
    student_id: str,
    on_date: date,
    marked_at,
    period: int = 1,
    status=None,
    subject_id: str = SUBJECT_MATH,
    school_id: str = SCHOOL,
    **overrides,
) -> AttendanceRecord:
    record = AttendanceRecord(
        record_id=oid(1000 + n),
        school_id=school_id,
        class_id=CLASS_A,
        subject_id=subject_id,
        date=on_date,
        period=period,
        student_id=student_id,
        status=status or AttendanceStatus.PRESENT,
        marked_at=marked_at,
        marked_by=TEACHER,
    )
    return replace(record, **overrides) if overrides else record


class FakeCursor:
    """Records statements; ``fail_on`` names the nth executemany call that raises."""

    def __init__(self, rows=None, fail_on: Optional[int] = None):
        self.rows = list(rows or [])
        self.fail_on = fail_on
        self.statements: list[str] = []
        self.closed = False

    def execute(self, sql, params=None):
        self.statements.append(sql)

    def executemany(self, sql, seq):
        self.statements.append(sql)
        if self.fail_on is not None and len(self.statements) >= self.fail_on:
            raise mysql.connector.Error("Lost connection to MySQL server during query")

    def fetchall(self):
        return self.rows

    def fetchone(self):
        return self.rows[0] if self.rows else None

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, cursor: FakeCursor):
        self._cursor = cursor
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=False):
        return self._cursor

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class FakeConnectionFactory:
    def __init__(self, cursor: FakeCursor):
        self.connection = FakeConnection(cursor)

    def connect(self, *, with_database=True):
        return self.connection
