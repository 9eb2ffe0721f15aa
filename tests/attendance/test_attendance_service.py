from datetime import date, datetime

import pytest

from src.school_attendance.school_attendance.attendance.model import AttendanceFilters
from src.school_attendance.school_attendance.attendance.service import AttendanceService
from src.school_attendance.school_attendance.attendance.validation import FilterQuery
from src.school_attendance.school_attendance.core.enums import AttendanceStatus, Role
from src.school_attendance.school_attendance.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    PolicyDenied,
    ValidationError,
)
from src.school_attendance.school_attendance.users.model import StaffIdentity
from tests.fakes import (
    CLASS_A,
    OTHER_SCHOOL,
    SCHOOL,
    SUBJECT_MATH,
    TEACHER,
    InMemoryAttendance,
    InMemorySchools,
    make_record,
    oid,
)

NOW = datetime(2025, 3, 10, 9, 0)
STAFF = StaffIdentity(user_id=TEACHER, school_id=SCHOOL, role=Role.TEACHER)


@pytest.fixture
def repo():
    return InMemoryAttendance()


@pytest.fixture
def service(repo):
    return AttendanceService(repo, InMemorySchools())


def _payload(**overrides):
    body = {
        "classId": CLASS_A,
        "subjectId": SUBJECT_MATH,
        "date": "2025-03-10",
        "period": 1,
        "attendanceData": [
            {"studentId": oid(101), "status": "present"},
            {"studentId": oid(102), "status": "late"},
        ],
    }
    body.update(overrides)
    return body


def test_mark_attendance_commits_valid_payload(service, repo):
    result = service.mark_attendance(_payload(), staff=STAFF, now=NOW)

    assert result.created == 2
    assert {r.school_id for r in repo.records.values()} == {SCHOOL}


def test_mark_attendance_rejects_invalid_payload_without_writing(service, repo):
    with pytest.raises(ValidationError):
        service.mark_attendance(_payload(period=12), staff=STAFF, now=NOW)

    assert repo.records == {}


def test_mark_attendance_for_unknown_school(service):
    stranger = StaffIdentity(user_id=TEACHER, school_id=OTHER_SCHOOL, role=Role.TEACHER)

    with pytest.raises(NotFoundError):
        service.mark_attendance(_payload(), staff=stranger, now=NOW)


def test_mark_bulk_attendance_returns_failed_groups(service):
    payload = _payload(
        periods=[
            {"period": 1, "attendanceData": [{"studentId": oid(101), "status": "present"}]},
            {"period": 2, "attendanceData": []},
        ]
    )

    result = service.mark_bulk_attendance(payload, staff=STAFF, now=NOW)

    assert result.created == 1
    assert [f.period for f in result.failed] == [2]


def test_update_attendance_changes_status(service, repo):
    record = repo.add(make_record(1, student_id=oid(101), on_date=date(2025, 3, 10), marked_at=datetime(2025, 3, 10, 8)))

    updated = service.update_attendance(
        record.record_id, {"status": "absent", "modificationReason": "Left early"}, staff=STAFF, now=NOW
    )

    assert updated.status == AttendanceStatus.ABSENT
    assert updated.modification_reason == "Left early"
    assert [c.new_status for c in service.list_changes(record.record_id)] == [AttendanceStatus.ABSENT]


def test_update_attendance_denied_by_policy(service, repo):
    record = repo.add(make_record(1, student_id=oid(101), on_date=date(2025, 3, 1), marked_at=datetime(2025, 3, 1, 8)))

    with pytest.raises(PolicyDenied):
        service.update_attendance(record.record_id, {"status": "absent"}, staff=STAFF, now=NOW)


def test_update_attendance_from_another_school_is_forbidden(service, repo):
    record = repo.add(make_record(1, student_id=oid(101), on_date=date(2025, 3, 10), marked_at=datetime(2025, 3, 10, 8)))
    outsider = StaffIdentity(user_id=oid(31), school_id=OTHER_SCHOOL, role=Role.ADMIN)
    superadmin = StaffIdentity(user_id=oid(32), school_id=OTHER_SCHOOL, role=Role.SUPERADMIN)

    with pytest.raises(AuthorizationError):
        service.update_attendance(record.record_id, {"status": "absent"}, staff=outsider, now=NOW)

    assert service.update_attendance(record.record_id, {"status": "absent"}, staff=superadmin, now=NOW).status == (
        AttendanceStatus.ABSENT
    )


def test_get_attendance_checks_id_and_existence(service):
    with pytest.raises(ValidationError):
        service.get_attendance("123")
    with pytest.raises(NotFoundError):
        service.get_attendance(oid(9999))


def test_payload_reports_modifiability(service, repo):
    fresh = repo.add(make_record(1, student_id=oid(101), on_date=date(2025, 3, 10), marked_at=datetime(2025, 3, 10, 8)))
    stale = repo.add(make_record(2, student_id=oid(102), on_date=date(2025, 3, 1), marked_at=datetime(2025, 3, 1, 8)))

    payloads = service.to_payloads([fresh, stale], now=NOW)

    assert [p["canModify"] for p in payloads] == [True, False]
    assert payloads[0]["minutesSinceMarked"] == 60
    assert payloads[0]["date"] == "2025-03-10"
    assert payloads[0]["status"] == "present"


def test_search_paginates(service, repo):
    for i in range(5):
        repo.add(make_record(i, student_id=oid(100 + i), on_date=date(2025, 3, 10), marked_at=datetime(2025, 3, 10, 8)))

    page = service.search(FilterQuery(filters=AttendanceFilters(school_id=SCHOOL), page=2, limit=2))

    assert page.total == 5
    assert page.total_pages == 3
    assert len(page.items) == 2
