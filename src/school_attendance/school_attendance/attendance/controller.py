from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import current_staff, staff_required, to_jsonable
from ..container import Container
from .model import CommitResult
from .validation import validate_class_query, validate_filter_query


def _commit_response(result: CommitResult, *, created_message: str):
    """201 when everything committed, 409 on policy denials, 400 when nothing could be written."""
    body = {"success": True, "message": created_message, "data": result.as_dict()}

    if result.failed and not result.committed and not result.skipped:
        body.update(success=False, message="No period could be validated")
        return jsonify(body), 400
    if result.skipped or result.failed:
        body.update(success=False, message="Attendance partially saved")
        return jsonify(body), 409
    return jsonify(body), 201


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance", methods=["POST"], endpoint="mark_attendance")
    @staff_required
    def mark_attendance():
        result = service.mark_attendance(request.get_json(silent=True), staff=current_staff())
        return _commit_response(result, created_message="Attendance marked successfully")

    @app.route("/api/bulk-attendance", methods=["POST"], endpoint="mark_bulk_attendance")
    @staff_required
    def mark_bulk_attendance():
        result = service.mark_bulk_attendance(request.get_json(silent=True), staff=current_staff())
        return _commit_response(result, created_message="Bulk attendance marked successfully")

    @app.route("/api/attendance/<record_id>", methods=["PATCH"], endpoint="update_attendance")
    @staff_required
    def update_attendance(record_id: str):
        record = service.update_attendance(record_id, request.get_json(silent=True), staff=current_staff())
        return jsonify({"success": True, "message": "Attendance updated successfully", "data": service.to_payload(record)})

    @app.route("/api/attendance/<record_id>", methods=["GET"], endpoint="get_attendance")
    @staff_required
    def get_attendance(record_id: str):
        record = service.get_attendance(record_id, staff=current_staff())
        return jsonify({"success": True, "data": service.to_payload(record)})

    @app.route("/api/attendance/<record_id>/changes", methods=["GET"], endpoint="attendance_changes")
    @staff_required
    def attendance_changes(record_id: str):
        changes = service.list_changes(record_id, staff=current_staff())
        return jsonify({"success": True, "data": to_jsonable(changes)})

    @app.route("/api/attendance", methods=["GET"], endpoint="search_attendance")
    @staff_required
    def search_attendance():
        query = validate_filter_query(request.args).unwrap()
        page = service.search(query, staff=current_staff())
        return jsonify(
            {
                "success": True,
                "data": service.to_payloads(page.items),
                "meta": {"total": page.total, "page": page.page, "limit": page.limit, "totalPages": page.total_pages},
            }
        )

    @app.route("/api/class-attendance", methods=["GET"], endpoint="class_attendance")
    @staff_required
    def class_attendance():
        query = validate_class_query(request.args).unwrap()
        records = service.get_class_attendance(query, staff=current_staff())
        return jsonify({"success": True, "data": service.to_payloads(records)})
