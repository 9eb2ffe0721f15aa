from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Union

from ..core.enums import AttendanceStatus, PolicyDenial


@dataclass(frozen=True)
class AttendanceKey:
    """Composite key: one mark per (class, subject, date, period, student)."""

    class_id: str
    subject_id: str
    date: date
    period: int
    student_id: str


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one committed attendance mark."""

    record_id: str
    school_id: str
    class_id: str
    subject_id: str
    date: date
    period: int
    student_id: str
    status: AttendanceStatus
    marked_at: datetime
    marked_by: str
    last_modified_at: Optional[datetime] = None
    modified_by: Optional[str] = None
    modification_reason: Optional[str] = None
    modification_count: int = 0

    @property
    def key(self) -> AttendanceKey:
        return AttendanceKey(self.class_id, self.subject_id, self.date, self.period, self.student_id)

    @property
    def last_touched_at(self) -> datetime:
        return self.last_modified_at or self.marked_at


@dataclass(frozen=True)
class AttendanceChange:
    """Audit row written whenever an existing mark is overwritten."""

    record_id: str
    key: AttendanceKey
    previous_status: AttendanceStatus
    new_status: AttendanceStatus
    changed_by: str
    changed_at: datetime
    reason: Optional[str] = None


@dataclass(frozen=True)
class AttendanceEntry:
    student_id: str
    status: AttendanceStatus


@dataclass(frozen=True)
class AttendanceSubmission:
    """Validated single-period submission (transient, never stored as-is)."""

    class_id: str
    subject_id: str
    date: date
    period: int
    entries: tuple[AttendanceEntry, ...]
    modification_reason: Optional[str] = None


@dataclass(frozen=True)
class PeriodGroup:
    period: int
    entries: tuple[AttendanceEntry, ...]


@dataclass(frozen=True)
class BulkAttendanceSubmission:
    """Validated multi-period submission.

    ``failed_periods`` holds groups that did not pass validation; they are
    reported as failed without blocking the valid groups.
    """

    class_id: str
    subject_id: str
    date: date
    periods: tuple[PeriodGroup, ...]
    failed_periods: tuple["PeriodFailed", ...] = ()
    modification_reason: Optional[str] = None

    def submissions(self) -> list[AttendanceSubmission]:
        return [
            AttendanceSubmission(
                class_id=self.class_id,
                subject_id=self.subject_id,
                date=self.date,
                period=g.period,
                entries=g.entries,
                modification_reason=self.modification_reason,
            )
            for g in self.periods
        ]


@dataclass(frozen=True)
class AttendanceUpdate:
    status: Optional[AttendanceStatus] = None
    modification_reason: Optional[str] = None


# Per-item outcomes of a batch commit.


@dataclass(frozen=True)
class Committed:
    student_id: str
    period: int
    record_id: str
    created: bool


@dataclass(frozen=True)
class Skipped:
    student_id: str
    period: int
    reason: PolicyDenial


@dataclass(frozen=True)
class PeriodFailed:
    period: Optional[int]
    violations: tuple = ()


Outcome = Union[Committed, Skipped, PeriodFailed]


@dataclass
class CommitResult:
    """Aggregated report of a (possibly multi-period) batch commit."""

    outcomes: list[Outcome] = field(default_factory=list)

    @property
    def committed(self) -> int:
        return sum(1 for o in self.outcomes if isinstance(o, Committed))

    @property
    def created(self) -> int:
        return sum(1 for o in self.outcomes if isinstance(o, Committed) and o.created)

    @property
    def updated(self) -> int:
        return sum(1 for o in self.outcomes if isinstance(o, Committed) and not o.created)

    @property
    def skipped(self) -> list[Skipped]:
        return [o for o in self.outcomes if isinstance(o, Skipped)]

    @property
    def failed(self) -> list[PeriodFailed]:
        return [o for o in self.outcomes if isinstance(o, PeriodFailed)]

    def extend(self, other: "CommitResult") -> None:
        self.outcomes.extend(other.outcomes)

    def as_dict(self) -> dict:
        return {
            "committed": self.committed,
            "created": self.created,
            "updated": self.updated,
            "skipped": [
                {"studentId": s.student_id, "period": s.period, "reason": s.reason.value} for s in self.skipped
            ],
            "failed": [
                {"period": f.period, "violations": [v.as_dict() for v in f.violations]} for f in self.failed
            ],
        }


@dataclass(frozen=True)
class AttendanceReportRow:
    """Read-model for statistics and reports (record joined with class/student/subject)."""

    record_id: str
    student_id: str
    student_name: str
    roll_number: int
    grade: int
    section: str
    subject_id: str
    subject_name: str
    date: date
    period: int
    status: AttendanceStatus


@dataclass(frozen=True)
class AttendanceFilters:
    school_id: Optional[str] = None
    student_id: Optional[str] = None
    class_id: Optional[str] = None
    subject_id: Optional[str] = None
    marked_by: Optional[str] = None
    status: Optional[AttendanceStatus] = None
    period: Optional[int] = None
    date: Optional[date] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class Page:
    items: list
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0
