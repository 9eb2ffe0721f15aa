from __future__ import annotations

import csv
import io

from flask import Flask, jsonify, request

from ..attendance.validation import (
    validate_report_query,
    validate_stats_query,
    validate_student_history_query,
    validate_student_report_query,
)
from ..common.web import current_staff, staff_required, to_jsonable
from ..container import Container
from ..core.enums import ReportFormat
from ..core.exceptions import AuthorizationError
from .model import AttendanceReport

CSV_FIELDS = [
    "student_id",
    "student_name",
    "roll_number",
    "grade",
    "section",
    "total_classes",
    "present_classes",
    "absent_classes",
    "late_classes",
    "excused_classes",
    "attendance_percentage",
]


def register(app: Flask, container: Container) -> None:
    reports = container.report_service
    attendance = container.attendance_service

    def _require_school(school_id: str) -> None:
        if not current_staff().can_access_school(school_id):
            raise AuthorizationError("Cannot read attendance of another school")

    def _write_report_csv(*, report: AttendanceReport, filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for row in to_jsonable(report.rows):
            writer.writerow(row)

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/student-attendance/<student_id>", methods=["GET"], endpoint="student_attendance")
    @staff_required
    def student_attendance(student_id: str):
        query = validate_student_history_query(student_id, request.args).unwrap()
        records = reports.student_history(
            student_id=query.student_id, start=query.start_date, end=query.end_date, subject_id=query.subject_id
        )
        staff = current_staff()
        records = [r for r in records if staff.can_access_school(r.school_id)]
        return jsonify({"success": True, "data": attendance.to_payloads(records)})

    @app.route("/api/student-attendance-report/<student_id>", methods=["GET"], endpoint="student_attendance_report")
    @staff_required
    def student_attendance_report(student_id: str):
        query = validate_student_report_query(student_id, request.args).unwrap()
        report = reports.student_report(
            student_id=query.student_id, start=query.start_date, end=query.end_date, staff=current_staff()
        )
        return jsonify({"success": True, "data": to_jsonable(report)})

    @app.route("/api/attendance-stats/<school_id>", methods=["GET"], endpoint="attendance_stats")
    @staff_required
    def attendance_stats(school_id: str):
        query = validate_stats_query(school_id, request.args).unwrap()
        _require_school(query.school_id)
        stats = reports.compute_stats(
            school_id=query.school_id,
            start=query.start_date,
            end=query.end_date,
            grade=query.grade,
            section=query.section,
        )
        return jsonify({"success": True, "data": to_jsonable(stats)})

    @app.route("/api/attendance-report/<school_id>", methods=["GET"], endpoint="attendance_report")
    @staff_required
    def attendance_report(school_id: str):
        query = validate_report_query(school_id, request.args).unwrap()
        _require_school(query.school_id)
        if query.format == ReportFormat.PDF:
            return jsonify({"success": False, "message": "PDF reports are rendered by the document service"}), 501

        report = reports.build_report(
            school_id=query.school_id,
            start=query.start_date,
            end=query.end_date,
            grade=query.grade,
            section=query.section,
            student_id=query.student_id,
            min_attendance=query.min_attendance,
        )
        if query.format == ReportFormat.CSV:
            filename = f"attendance_{query.start_date:%Y%m%d}_{query.end_date:%Y%m%d}.csv"
            return _write_report_csv(report=report, filename=filename)
        return jsonify({"success": True, "data": to_jsonable(report)})
