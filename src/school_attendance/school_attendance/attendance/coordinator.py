from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from ..core.exceptions import PolicyDenied, StoreFailure
from ..schools.model import SchoolAttendancePolicy
from .model import (
    AttendanceChange,
    AttendanceRecord,
    AttendanceSubmission,
    AttendanceUpdate,
    BulkAttendanceSubmission,
    CommitResult,
    Committed,
    Skipped,
)
from .policy import AttendancePolicyEngine
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def new_record_id() -> str:
    return uuid.uuid4().hex[:24]


@dataclass
class _StagedPeriod:
    inserts: list[AttendanceRecord]
    updates: list[AttendanceRecord]
    changes: list[AttendanceChange]
    result: CommitResult


class AttendanceStoreCoordinator:
    """Commits validated submissions one class period at a time.

    Each period is one atomic unit: a store failure leaves that period
    untouched. Periods already committed stay committed; there is no rollback
    across periods.
    """

    def __init__(self, attendance: AttendanceRepository, *, engine: Optional[AttendancePolicyEngine] = None):
        self._attendance = attendance
        self._engine = engine or AttendancePolicyEngine()

    def commit_batch(
        self,
        submission: AttendanceSubmission | BulkAttendanceSubmission,
        policy: SchoolAttendancePolicy,
        now: datetime,
        *,
        school_id: str,
        marked_by: str,
    ) -> CommitResult:
        result = CommitResult()
        if isinstance(submission, BulkAttendanceSubmission):
            result.outcomes.extend(submission.failed_periods)
            units = submission.submissions()
        else:
            units = [submission]

        for unit in units:
            try:
                staged = self._stage(unit, policy, now, school_id=school_id, marked_by=marked_by)
                self._attendance.apply_period(inserts=staged.inserts, updates=staged.updates, changes=staged.changes)
            except StoreFailure as exc:
                logger.warning(
                    "store failure on class=%s date=%s period=%s: %s", unit.class_id, unit.date, unit.period, exc
                )
                raise StoreFailure(str(exc), partial=result) from exc

            result.extend(staged.result)
            logger.info(
                "committed class=%s subject=%s date=%s period=%s created=%d updated=%d skipped=%d",
                unit.class_id,
                unit.subject_id,
                unit.date,
                unit.period,
                len(staged.inserts),
                len(staged.updates),
                len(staged.result.skipped),
            )
        return result

    def _stage(
        self,
        unit: AttendanceSubmission,
        policy: SchoolAttendancePolicy,
        now: datetime,
        *,
        school_id: str,
        marked_by: str,
    ) -> _StagedPeriod:
        existing = self._attendance.find_by_keys(
            class_id=unit.class_id,
            subject_id=unit.subject_id,
            on_date=unit.date,
            period=unit.period,
            student_ids=[e.student_id for e in unit.entries],
        )

        staged = _StagedPeriod(inserts=[], updates=[], changes=[], result=CommitResult())
        for entry in unit.entries:
            current = existing.get(entry.student_id)
            if current is None:
                record = AttendanceRecord(
                    record_id=new_record_id(),
                    school_id=school_id,
                    class_id=unit.class_id,
                    subject_id=unit.subject_id,
                    date=unit.date,
                    period=unit.period,
                    student_id=entry.student_id,
                    status=entry.status,
                    marked_at=now,
                    marked_by=marked_by,
                )
                staged.inserts.append(record)
                staged.result.outcomes.append(
                    Committed(student_id=entry.student_id, period=unit.period, record_id=record.record_id, created=True)
                )
                continue

            decision = self._engine.can_modify(current, policy, now)
            if not decision.allowed:
                logger.warning(
                    "skipped student=%s period=%s on %s: %s",
                    entry.student_id,
                    unit.period,
                    unit.date,
                    decision.reason.value,
                )
                staged.result.outcomes.append(
                    Skipped(student_id=entry.student_id, period=unit.period, reason=decision.reason)
                )
                continue

            updated, change = _overwrite(current, entry.status, unit.modification_reason, now, marked_by)
            staged.updates.append(updated)
            staged.changes.append(change)
            staged.result.outcomes.append(
                Committed(student_id=entry.student_id, period=unit.period, record_id=current.record_id, created=False)
            )
        return staged

    def update_record(
        self,
        record: AttendanceRecord,
        update: AttendanceUpdate,
        policy: SchoolAttendancePolicy,
        now: datetime,
        *,
        modified_by: str,
    ) -> AttendanceRecord:
        """Policy-gated single-record change; denial raises ``PolicyDenied``."""
        decision = self._engine.can_modify(record, policy, now)
        if not decision.allowed:
            logger.info("update of record %s denied: %s", record.record_id, decision.reason.value)
            raise PolicyDenied(decision.reason)

        updated, change = _overwrite(
            record, update.status or record.status, update.modification_reason, now, modified_by
        )
        return self._attendance.apply_update(record=updated, change=change)


def _overwrite(
    current: AttendanceRecord,
    status,
    reason: Optional[str],
    now: datetime,
    modified_by: str,
) -> tuple[AttendanceRecord, AttendanceChange]:
    updated = replace(
        current,
        status=status,
        last_modified_at=max(now, current.marked_at),
        modified_by=modified_by,
        modification_reason=reason if reason is not None else current.modification_reason,
        modification_count=current.modification_count + 1,
    )
    change = AttendanceChange(
        record_id=current.record_id,
        key=current.key,
        previous_status=current.status,
        new_status=status,
        changed_by=modified_by,
        changed_at=updated.last_modified_at,
        reason=reason,
    )
    return updated, change
