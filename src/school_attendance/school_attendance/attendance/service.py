from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import minutes_since, now_local
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError
from ..schools.model import SchoolAttendancePolicy
from ..schools.repository import SchoolRepository
from ..users.model import StaffIdentity
from .coordinator import AttendanceStoreCoordinator
from .model import AttendanceChange, AttendanceRecord, CommitResult, Page
from .policy import AttendancePolicyEngine
from .repository import AttendanceRepository
from .validation import (
    ClassAttendanceQuery,
    FilterQuery,
    validate_bulk_submission,
    validate_record_id,
    validate_submission,
    validate_update,
)

logger = logging.getLogger(__name__)


class AttendanceService:
    """Request-level orchestration: validate, resolve the school's policy, commit."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        schools: SchoolRepository,
        *,
        engine: Optional[AttendancePolicyEngine] = None,
    ):
        self._attendance = attendance
        self._schools = schools
        self._engine = engine or AttendancePolicyEngine()
        self._coordinator = AttendanceStoreCoordinator(attendance, engine=self._engine)

    def _policy_for(self, school_id: str) -> SchoolAttendancePolicy:
        policy = self._schools.get_policy(school_id)
        if policy is None:
            raise NotFoundError("School not found")
        return policy

    def mark_attendance(self, payload: Any, *, staff: StaffIdentity, now: Optional[datetime] = None) -> CommitResult:
        """Single class period: invalid input rejects the whole submission."""
        now = now or now_local()
        submission = validate_submission(payload, now=now).unwrap()
        policy = self._policy_for(staff.school_id)
        return self._coordinator.commit_batch(
            submission, policy, now, school_id=staff.school_id, marked_by=staff.user_id
        )

    def mark_bulk_attendance(
        self, payload: Any, *, staff: StaffIdentity, now: Optional[datetime] = None
    ) -> CommitResult:
        now = now or now_local()
        submission = validate_bulk_submission(payload, now=now).unwrap()
        policy = self._policy_for(staff.school_id)
        return self._coordinator.commit_batch(
            submission, policy, now, school_id=staff.school_id, marked_by=staff.user_id
        )

    def update_attendance(
        self, record_id: str, payload: Any, *, staff: StaffIdentity, now: Optional[datetime] = None
    ) -> AttendanceRecord:
        now = now or now_local()
        update = validate_update(payload).unwrap()
        record = self.get_attendance(record_id, staff=staff)

        policy = self._policy_for(record.school_id)
        updated = self._coordinator.update_record(record, update, policy, now, modified_by=staff.user_id)
        logger.info("record %s modified by %s (count=%d)", record_id, staff.user_id, updated.modification_count)
        return updated

    def get_attendance(self, record_id: str, *, staff: Optional[StaffIdentity] = None) -> AttendanceRecord:
        record_id = validate_record_id(record_id).unwrap()
        record = self._attendance.get_by_id(record_id)
        if not record:
            logger.info("attendance record %s not found", record_id)
            raise NotFoundError("Attendance record not found")
        if staff is not None:
            self._check_same_school(record, staff)
        return record

    def get_class_attendance(
        self, query: ClassAttendanceQuery, *, staff: Optional[StaffIdentity] = None
    ) -> Sequence[AttendanceRecord]:
        records = self._attendance.query_class(class_id=query.class_id, on_date=query.date, period=query.period)
        if staff is None:
            return records
        return [r for r in records if staff.can_access_school(r.school_id)]

    def search(self, query: FilterQuery, *, staff: Optional[StaffIdentity] = None) -> Page:
        filters = query.filters
        if staff is not None and staff.role != Role.SUPERADMIN:
            if filters.school_id is not None and not staff.can_access_school(filters.school_id):
                raise AuthorizationError("Cannot search attendance of another school")
            filters = replace(filters, school_id=staff.school_id)
        return self._attendance.search(filters=filters, page=query.page, limit=query.limit)

    def list_changes(self, record_id: str, *, staff: Optional[StaffIdentity] = None) -> Sequence[AttendanceChange]:
        record = self.get_attendance(record_id, staff=staff)
        return self._attendance.list_changes(record.record_id)

    def to_payloads(self, records: Sequence[AttendanceRecord], *, now: Optional[datetime] = None) -> list[dict]:
        now = now or now_local()
        policies: dict[str, Optional[SchoolAttendancePolicy]] = {}
        out = []
        for record in records:
            if record.school_id not in policies:
                policies[record.school_id] = self._schools.get_policy(record.school_id)
            out.append(self._to_payload(record, policies[record.school_id], now))
        return out

    def to_payload(self, record: AttendanceRecord, *, now: Optional[datetime] = None) -> dict:
        return self.to_payloads([record], now=now)[0]

    def _to_payload(self, record: AttendanceRecord, policy: Optional[SchoolAttendancePolicy], now: datetime) -> dict:
        can_modify = policy is not None and self._engine.can_modify(record, policy, now).allowed
        return {
            "id": record.record_id,
            "schoolId": record.school_id,
            "classId": record.class_id,
            "subjectId": record.subject_id,
            "studentId": record.student_id,
            "date": record.date.isoformat(),
            "period": record.period,
            "status": record.status.value,
            "markedAt": record.marked_at.isoformat(),
            "markedBy": record.marked_by,
            "lastModifiedAt": record.last_modified_at.isoformat() if record.last_modified_at else None,
            "modifiedBy": record.modified_by,
            "modificationReason": record.modification_reason,
            "modificationCount": record.modification_count,
            "canModify": can_modify,
            "minutesSinceMarked": minutes_since(record.last_touched_at, now),
        }

    @staticmethod
    def _check_same_school(record: AttendanceRecord, staff: StaffIdentity) -> None:
        if not staff.can_access_school(record.school_id):
            raise AuthorizationError("Attendance record belongs to another school")
