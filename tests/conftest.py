import pytest

from src.school_attendance.school_attendance.container import assemble
from tests.fakes import InMemoryAttendance, InMemoryEvents, InMemorySchools, InMemoryUsers


@pytest.fixture
def attendance_repo():
    return InMemoryAttendance()


@pytest.fixture
def schools_repo():
    return InMemorySchools()


@pytest.fixture
def users_repo():
    return InMemoryUsers()


@pytest.fixture
def events_repo():
    return InMemoryEvents()


@pytest.fixture
def container(attendance_repo, schools_repo, users_repo, events_repo):
    return assemble(
        attendance_repo=attendance_repo,
        schools_repo=schools_repo,
        users_repo=users_repo,
        events_repo=events_repo,
    )
