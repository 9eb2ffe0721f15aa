from __future__ import annotations

from datetime import date
from typing import Mapping, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import (
    AttendanceChange,
    AttendanceFilters,
    AttendanceKey,
    AttendanceRecord,
    AttendanceReportRow,
    Page,
)
from .repository import AttendanceRepository

RECORD_COLUMNS = """
    record_id, school_id, class_id, subject_id, attendance_date, period, student_id, status,
    marked_at, marked_by, last_modified_at, modified_by, modification_reason, modification_count
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=r["record_id"],
        school_id=r["school_id"],
        class_id=r["class_id"],
        subject_id=r["subject_id"],
        date=r["attendance_date"],
        period=int(r["period"]),
        student_id=r["student_id"],
        status=AttendanceStatus(r["status"]),
        marked_at=r["marked_at"],
        marked_by=r["marked_by"],
        last_modified_at=r.get("last_modified_at"),
        modified_by=r.get("modified_by"),
        modification_reason=r.get("modification_reason"),
        modification_count=int(r.get("modification_count") or 0),
    )


def _record_params(rec: AttendanceRecord) -> tuple:
    return (
        rec.record_id,
        rec.school_id,
        rec.class_id,
        rec.subject_id,
        rec.date,
        rec.period,
        rec.student_id,
        rec.status.value,
        rec.marked_at,
        rec.marked_by,
    )


def _change_params(change: AttendanceChange) -> tuple:
    return (
        change.record_id,
        change.previous_status.value,
        change.new_status.value,
        change.changed_by,
        change.changed_at,
        change.reason,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, record_id: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {RECORD_COLUMNS} FROM attendance_records WHERE record_id=%s", (record_id,))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def find_by_keys(
        self,
        *,
        class_id: str,
        subject_id: str,
        on_date: date,
        period: int,
        student_ids: Sequence[str],
    ) -> Mapping[str, AttendanceRecord]:
        if not student_ids:
            return {}
        placeholders = ",".join(["%s"] * len(student_ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {RECORD_COLUMNS}
                FROM attendance_records
                WHERE class_id=%s AND subject_id=%s AND attendance_date=%s AND period=%s
                  AND student_id IN ({placeholders})
                """,
                (class_id, subject_id, on_date, int(period), *student_ids),
            )
            return {r["student_id"]: _to_record(r) for r in fetchall(cur)}

    def apply_period(
        self,
        *,
        inserts: Sequence[AttendanceRecord],
        updates: Sequence[AttendanceRecord],
        changes: Sequence[AttendanceChange],
    ) -> None:
        if not inserts and not updates:
            return
        # One transaction per class period; the unique key on
        # (class, subject, date, period, student) rejects a racing duplicate insert.
        with db_cursor(self._conn_factory) as (_, cur):
            if inserts:
                cur.executemany(
                    """
                    INSERT INTO attendance_records(
                        record_id, school_id, class_id, subject_id, attendance_date, period, student_id, status,
                        marked_at, marked_by, modification_count
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,0)
                    """,
                    [_record_params(r) for r in inserts],
                )
            for rec in updates:
                self._update_row(cur, rec)
            if changes:
                cur.executemany(
                    """
                    INSERT INTO attendance_changes(
                        record_id, previous_status, new_status, changed_by, changed_at, reason
                    )
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    [_change_params(c) for c in changes],
                )

    def apply_update(self, *, record: AttendanceRecord, change: AttendanceChange) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            self._update_row(cur, record)
            cur.execute(
                """
                INSERT INTO attendance_changes(
                    record_id, previous_status, new_status, changed_by, changed_at, reason
                )
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                _change_params(change),
            )
            cur.execute(f"SELECT {RECORD_COLUMNS} FROM attendance_records WHERE record_id=%s", (record.record_id,))
            return _to_record(fetchone(cur))

    @staticmethod
    def _update_row(cur, rec: AttendanceRecord) -> None:
        cur.execute(
            """
            UPDATE attendance_records
            SET status=%s, last_modified_at=%s, modified_by=%s, modification_reason=%s,
                modification_count=modification_count + 1
            WHERE record_id=%s
            """,
            (rec.status.value, rec.last_modified_at, rec.modified_by, rec.modification_reason, rec.record_id),
        )

    def query_class(self, *, class_id: str, on_date: date, period: Optional[int] = None) -> Sequence[AttendanceRecord]:
        clauses = ["ar.class_id=%s", "ar.attendance_date=%s"]
        params: list[object] = [class_id, on_date]
        if period is not None:
            clauses.append("ar.period=%s")
            params.append(int(period))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {", ".join("ar." + c.strip() for c in RECORD_COLUMNS.split(","))}
                FROM attendance_records ar
                LEFT JOIN students s ON s.student_id = ar.student_id
                WHERE {" AND ".join(clauses)}
                ORDER BY ar.period ASC, COALESCE(s.roll_number, 0) ASC
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def query_student(
        self,
        *,
        student_id: str,
        start_date: date,
        end_date: date,
        subject_id: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["student_id=%s", "attendance_date BETWEEN %s AND %s"]
        params: list[object] = [student_id, start_date, end_date]
        if subject_id is not None:
            clauses.append("subject_id=%s")
            params.append(subject_id)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {RECORD_COLUMNS}
                FROM attendance_records
                WHERE {" AND ".join(clauses)}
                ORDER BY attendance_date DESC, period ASC
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def get_report_rows(
        self,
        *,
        start_date: date,
        end_date: date,
        school_id: Optional[str] = None,
        grade: Optional[int] = None,
        section: Optional[str] = None,
        student_id: Optional[str] = None,
    ) -> Sequence[AttendanceReportRow]:
        clauses = ["ar.attendance_date BETWEEN %s AND %s"]
        params: list[object] = [start_date, end_date]

        if school_id is not None:
            clauses.append("ar.school_id=%s")
            params.append(school_id)
        if grade is not None:
            clauses.append("c.grade=%s")
            params.append(int(grade))
        if section is not None:
            clauses.append("c.section=%s")
            params.append(section)
        if student_id is not None:
            clauses.append("ar.student_id=%s")
            params.append(student_id)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT
                    ar.record_id, ar.student_id, ar.subject_id, ar.attendance_date, ar.period, ar.status,
                    s.full_name, COALESCE(s.roll_number, 0) AS roll_number,
                    c.grade, c.section,
                    sub.name AS subject_name
                FROM attendance_records ar
                JOIN classes c ON c.class_id = ar.class_id
                LEFT JOIN students s ON s.student_id = ar.student_id
                LEFT JOIN subjects sub ON sub.subject_id = ar.subject_id
                WHERE {" AND ".join(clauses)}
                ORDER BY ar.attendance_date DESC, ar.period ASC, ar.student_id ASC
                """,
                tuple(params),
            )
            return [
                AttendanceReportRow(
                    record_id=r["record_id"],
                    student_id=r["student_id"],
                    student_name=r.get("full_name") or "-",
                    roll_number=int(r.get("roll_number") or 0),
                    grade=int(r["grade"]),
                    section=r["section"],
                    subject_id=r["subject_id"],
                    subject_name=r.get("subject_name") or "-",
                    date=r["attendance_date"],
                    period=int(r["period"]),
                    status=AttendanceStatus(r["status"]),
                )
                for r in fetchall(cur)
            ]

    def search(self, *, filters: AttendanceFilters, page: int, limit: int) -> Page:
        clauses: list[str] = []
        params: list[object] = []
        for column, value in (
            ("school_id", filters.school_id),
            ("student_id", filters.student_id),
            ("class_id", filters.class_id),
            ("subject_id", filters.subject_id),
            ("marked_by", filters.marked_by),
            ("period", filters.period),
            ("status", filters.status.value if filters.status else None),
        ):
            if value is not None:
                clauses.append(f"{column}=%s")
                params.append(value)

        if filters.date is not None:
            clauses.append("attendance_date=%s")
            params.append(filters.date)
        elif filters.start_date is not None and filters.end_date is not None:
            clauses.append("attendance_date BETWEEN %s AND %s")
            params.extend([filters.start_date, filters.end_date])

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM attendance_records {where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {RECORD_COLUMNS}
                FROM attendance_records
                {where}
                ORDER BY attendance_date DESC, period ASC
                LIMIT %s OFFSET %s
                """,
                (*params, int(limit), (int(page) - 1) * int(limit)),
            )
            items = [_to_record(r) for r in fetchall(cur)]
        return Page(items=items, total=total, page=page, limit=limit)

    def list_changes(self, record_id: str) -> Sequence[AttendanceChange]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT ch.record_id, ch.previous_status, ch.new_status, ch.changed_by, ch.changed_at, ch.reason,
                       ar.class_id, ar.subject_id, ar.attendance_date, ar.period, ar.student_id
                FROM attendance_changes ch
                JOIN attendance_records ar ON ar.record_id = ch.record_id
                WHERE ch.record_id=%s
                ORDER BY ch.changed_at ASC, ch.change_id ASC
                """,
                (record_id,),
            )
            return [
                AttendanceChange(
                    record_id=r["record_id"],
                    key=AttendanceKey(
                        class_id=r["class_id"],
                        subject_id=r["subject_id"],
                        date=r["attendance_date"],
                        period=int(r["period"]),
                        student_id=r["student_id"],
                    ),
                    previous_status=AttendanceStatus(r["previous_status"]),
                    new_status=AttendanceStatus(r["new_status"]),
                    changed_by=r["changed_by"],
                    changed_at=r["changed_at"],
                    reason=r.get("reason"),
                )
                for r in fetchall(cur)
            ]
