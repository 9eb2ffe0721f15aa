from datetime import date, datetime, timedelta

import pytest

from src.school_attendance.school_attendance.core.enums import Role
from src.school_attendance.school_attendance.core.exceptions import StoreFailure
from src.school_attendance.school_attendance.events.model import CalendarEvent, TargetAudience
from src.school_attendance.school_attendance.main import create_app
from src.school_attendance.school_attendance.reports.controller import CSV_FIELDS
from src.school_attendance.school_attendance.users.model import StudentProfile, Viewer
from tests.fakes import CLASS_A, OTHER_SCHOOL, SCHOOL, SUBJECT_MATH, TEACHER, make_record, oid


@pytest.fixture
def app(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container=container)


@pytest.fixture
def client(app):
    return app.test_client()


def _login(client, *, role="teacher", user_id=TEACHER, school_id=SCHOOL):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["school_id"] = school_id
        sess["role"] = role


def _payload(on=None, **overrides):
    body = {
        "classId": CLASS_A,
        "subjectId": SUBJECT_MATH,
        "date": (on or date.today()).isoformat(),
        "period": 1,
        "attendanceData": [{"studentId": oid(101), "status": "present"}, {"studentId": oid(102), "status": "absent"}],
    }
    body.update(overrides)
    return body


def test_marking_requires_login(client):
    resp = client.post("/api/attendance", json=_payload())

    assert resp.status_code == 401


def test_students_cannot_mark_attendance(client):
    _login(client, role="student")

    resp = client.post("/api/attendance", json=_payload())

    assert resp.status_code == 403


def test_mark_attendance_created(client, attendance_repo):
    _login(client)

    resp = client.post("/api/attendance", json=_payload())

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["success"] is True
    assert body["data"]["created"] == 2
    assert len(attendance_repo.records) == 2


def test_invalid_submission_lists_every_violation(client, attendance_repo):
    _login(client)

    resp = client.post("/api/attendance", json=_payload(classId="x", period=0))

    assert resp.status_code == 400
    assert {e["path"] for e in resp.get_json()["errors"]} == {"classId", "period"}
    assert attendance_repo.records == {}


def test_partial_commit_reports_skipped_entries(client, attendance_repo):
    today = date.today()
    attendance_repo.add(make_record(1, student_id=oid(101), on_date=today, marked_at=datetime.now() - timedelta(hours=30)))
    _login(client)

    resp = client.post("/api/attendance", json=_payload(on=today))

    assert resp.status_code == 409
    data = resp.get_json()["data"]
    assert data["created"] == 1
    assert data["skipped"] == [{"studentId": oid(101), "period": 1, "reason": "EditWindowExpired"}]


def test_bulk_attendance(client, attendance_repo):
    _login(client)
    periods = [
        {"period": p, "attendanceData": [{"studentId": oid(200 + i), "status": "present"} for i in range(5)]}
        for p in (1, 2)
    ]

    resp = client.post("/api/bulk-attendance", json=_payload(periods=periods))

    assert resp.status_code == 201
    assert resp.get_json()["data"]["created"] == 10
    assert len(attendance_repo.records) == 10


def test_update_locked_record_conflicts(client, attendance_repo):
    old = date.today() - timedelta(days=10)
    record = attendance_repo.add(
        make_record(1, student_id=oid(101), on_date=old, marked_at=datetime.combine(old, datetime.min.time()))
    )
    _login(client)

    resp = client.patch(f"/api/attendance/{record.record_id}", json={"status": "absent"})

    assert resp.status_code == 409
    assert resp.get_json()["reason"] == "LockedByAge"


def test_update_and_read_back(client, attendance_repo):
    record = attendance_repo.add(
        make_record(1, student_id=oid(101), on_date=date.today(), marked_at=datetime.now() - timedelta(minutes=5))
    )
    _login(client)

    resp = client.patch(f"/api/attendance/{record.record_id}", json={"status": "late", "modificationReason": "Bus"})
    got = client.get(f"/api/attendance/{record.record_id}")
    changes = client.get(f"/api/attendance/{record.record_id}/changes")

    assert resp.status_code == 200
    assert got.get_json()["data"]["status"] == "late"
    assert got.get_json()["data"]["modificationCount"] == 1
    assert got.get_json()["data"]["canModify"] is True
    assert [c["new_status"] for c in changes.get_json()["data"]] == ["late"]


def test_get_attendance_bad_and_unknown_ids(client):
    _login(client)

    assert client.get("/api/attendance/not-an-id").status_code == 400
    assert client.get(f"/api/attendance/{oid(9999)}").status_code == 404


def test_store_failure_is_retryable(client, attendance_repo):
    def broken(**kwargs):
        raise StoreFailure("Database write failed: lost connection")

    attendance_repo.apply_period = broken
    _login(client)

    resp = client.post("/api/attendance", json=_payload())

    assert resp.status_code == 503
    body = resp.get_json()
    assert body["retryable"] is True
    assert body["data"]["committed"] == 0


def test_search_attendance_with_meta(client, attendance_repo):
    for i in range(3):
        attendance_repo.add(make_record(i, student_id=oid(100 + i), on_date=date.today(), marked_at=datetime.now()))
    _login(client)

    resp = client.get(f"/api/attendance?schoolId={SCHOOL}&limit=2")

    body = resp.get_json()
    assert resp.status_code == 200
    assert len(body["data"]) == 2
    assert body["meta"] == {"total": 3, "page": 1, "limit": 2, "totalPages": 2}


def test_class_attendance(client, attendance_repo):
    today = date.today()
    attendance_repo.add(make_record(1, student_id=oid(101), on_date=today, period=2, marked_at=datetime.now()))
    _login(client)

    resp = client.get(f"/api/class-attendance?classId={CLASS_A}&date={today.isoformat()}&period=2")

    assert [r["studentId"] for r in resp.get_json()["data"]] == [oid(101)]


@pytest.fixture
def report_data(attendance_repo):
    profile = StudentProfile(oid(101), SCHOOL, "An Nguyen", 1, 5, "A")
    attendance_repo.students[profile.student_id] = profile
    attendance_repo.add(make_record(1, student_id=profile.student_id, on_date=date(2025, 3, 3), marked_at=datetime(2025, 3, 3, 8)))
    return profile


def test_report_as_csv(client, report_data):
    _login(client, role="admin")

    resp = client.get(f"/api/attendance-report/{SCHOOL}?startDate=2025-03-01&endDate=2025-03-31&format=csv")

    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    lines = resp.data.decode("utf-8-sig").splitlines()
    assert lines[0] == ",".join(CSV_FIELDS)
    assert lines[1].startswith(f"{oid(101)},An Nguyen,1,5,A,1,1,0,0,0,100")


def test_report_as_pdf_is_not_rendered_here(client, report_data):
    _login(client, role="admin")

    resp = client.get(f"/api/attendance-report/{SCHOOL}?startDate=2025-03-01&endDate=2025-03-31&format=pdf")

    assert resp.status_code == 501


def test_attendance_stats(client, report_data):
    _login(client, role="admin")

    resp = client.get(f"/api/attendance-stats/{SCHOOL}?startDate=2025-03-01&endDate=2025-03-31")

    data = resp.get_json()["data"]
    assert data["total_classes"] == 1
    assert data["attendance_percentage"] == 100
    assert data["daily_trend"] == [{"date": "2025-03-03", "total_classes": 1, "attendance_percentage": 100}]


def test_stats_range_too_long(client):
    _login(client, role="admin")

    resp = client.get(f"/api/attendance-stats/{SCHOOL}?startDate=2025-01-01&endDate=2026-01-03")

    assert resp.status_code == 400
    assert resp.get_json()["errors"] == [{"path": "endDate", "message": "Date range cannot exceed 365 days"}]


def test_reads_are_limited_to_the_session_school(client, attendance_repo):
    foreign = attendance_repo.add(
        make_record(
            1, student_id=oid(101), on_date=date.today(), marked_at=datetime.now(), school_id=OTHER_SCHOOL
        )
    )
    _login(client)

    assert client.get(f"/api/attendance/{foreign.record_id}").status_code == 403
    assert client.get(f"/api/attendance/{foreign.record_id}/changes").status_code == 403
    assert client.get(f"/api/attendance?schoolId={OTHER_SCHOOL}").status_code == 403
    assert client.get(f"/api/attendance-stats/{OTHER_SCHOOL}?startDate=2025-03-01&endDate=2025-03-31").status_code == 403
    assert client.get(f"/api/attendance-report/{OTHER_SCHOOL}?startDate=2025-03-01&endDate=2025-03-31").status_code == 403


def test_unscoped_reads_only_return_the_session_school(client, attendance_repo):
    today = date.today()
    attendance_repo.add(make_record(1, student_id=oid(101), on_date=today, marked_at=datetime.now()))
    attendance_repo.add(
        make_record(2, student_id=oid(102), on_date=today, marked_at=datetime.now(), school_id=OTHER_SCHOOL)
    )
    _login(client)

    searched = client.get("/api/attendance").get_json()
    in_class = client.get(f"/api/class-attendance?classId={CLASS_A}&date={today.isoformat()}").get_json()

    assert [r["studentId"] for r in searched["data"]] == [oid(101)]
    assert searched["meta"]["total"] == 1
    assert [r["studentId"] for r in in_class["data"]] == [oid(101)]


def test_superadmin_reads_any_school(client, attendance_repo):
    foreign = attendance_repo.add(
        make_record(
            1, student_id=oid(101), on_date=date.today(), marked_at=datetime.now(), school_id=OTHER_SCHOOL
        )
    )
    _login(client, role="superadmin")

    assert client.get(f"/api/attendance/{foreign.record_id}").status_code == 200
    assert client.get(f"/api/attendance?schoolId={OTHER_SCHOOL}").get_json()["meta"]["total"] == 1


def test_student_report_of_another_school_is_forbidden(client, users_repo, report_data):
    users_repo.students[report_data.student_id] = report_data
    _login(client, role="admin", school_id=OTHER_SCHOOL)

    resp = client.get(f"/api/student-attendance-report/{report_data.student_id}?startDate=2025-03-01&endDate=2025-03-31")
    history = client.get(f"/api/student-attendance/{report_data.student_id}?startDate=2025-03-01&endDate=2025-03-31")

    assert resp.status_code == 403
    assert history.get_json()["data"] == []


def test_resubmission_with_upper_case_ids_updates_the_same_record(client, attendance_repo):
    student = oid(0xABCDEF)
    body = _payload(attendanceData=[{"studentId": student, "status": "present"}])
    _login(client)

    first = client.post("/api/attendance", json=body)
    again = client.post(
        "/api/attendance",
        json=_payload(
            classId=CLASS_A.upper(),
            subjectId=SUBJECT_MATH.upper(),
            attendanceData=[{"studentId": student.upper(), "status": "absent"}],
        ),
    )

    assert first.status_code == 201
    assert again.get_json()["data"]["created"] == 0
    assert again.get_json()["data"]["updated"] == 1
    assert [r.student_id for r in attendance_repo.records.values()] == [student]


def test_calendar_events_for_viewer(client, users_repo, events_repo):
    viewer = Viewer(viewer_id=oid(40), role=Role.STUDENT, school_id=SCHOOL, grade=5, section="A")
    users_repo.viewers[viewer.viewer_id] = viewer
    tomorrow = date.today() + timedelta(days=1)
    events_repo.events.extend(
        [
            CalendarEvent(
                event_id=oid(501),
                school_id=SCHOOL,
                title="Sports day",
                date=tomorrow,
                target_audience=TargetAudience.from_lists(roles=["student"], grades=[], sections=[]),
            ),
            CalendarEvent(
                event_id=oid(502),
                school_id=SCHOOL,
                title="Staff meeting",
                date=tomorrow,
                target_audience=TargetAudience.from_lists(roles=[]),
            ),
        ]
    )
    _login(client, role="student", user_id=viewer.viewer_id)

    resp = client.get(f"/api/calendar-events?viewerId={viewer.viewer_id}")

    assert resp.status_code == 200
    assert [e["title"] for e in resp.get_json()["data"]] == ["Sports day"]
