from __future__ import annotations

from datetime import date
from typing import Mapping, Optional, Protocol, Sequence

from .model import (
    AttendanceChange,
    AttendanceFilters,
    AttendanceRecord,
    AttendanceReportRow,
    Page,
)


class AttendanceRepository(Protocol):
    def get_by_id(self, record_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def find_by_keys(
        self,
        *,
        class_id: str,
        subject_id: str,
        on_date: date,
        period: int,
        student_ids: Sequence[str],
    ) -> Mapping[str, AttendanceRecord]:
        """Existing marks of one class period, keyed by student id."""

        raise NotImplementedError

    def apply_period(
        self,
        *,
        inserts: Sequence[AttendanceRecord],
        updates: Sequence[AttendanceRecord],
        changes: Sequence[AttendanceChange],
    ) -> None:
        """Write one class period atomically: all rows or none.

        Updates must increment ``modification_count`` in the store itself so
        concurrent writers to the same key never lose a count.
        """

        raise NotImplementedError

    def apply_update(self, *, record: AttendanceRecord, change: AttendanceChange) -> AttendanceRecord:
        """Single-record variant of ``apply_period``; returns the stored row."""

        raise NotImplementedError

    def query_class(self, *, class_id: str, on_date: date, period: Optional[int] = None) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def query_student(
        self,
        *,
        student_id: str,
        start_date: date,
        end_date: date,
        subject_id: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

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
        raise NotImplementedError

    def search(self, *, filters: AttendanceFilters, page: int, limit: int) -> Page:
        raise NotImplementedError

    def list_changes(self, record_id: str) -> Sequence[AttendanceChange]:
        raise NotImplementedError
