import pytest
from fastapi.testclient import TestClient #fake http client that calls the FastAPI routes without running a real server.

from app.core.config import Settings
from app.main import app
from app.models import ClassGroup, Day, Faculty, Room, Subject, TimeSlot
from app.services.roster import Roster

WEEKDAYS = (Day.mon, Day.tue, Day.wed, Day.thu, Day.fri)


def weekday_slots() -> list[TimeSlot]:
    return [
        TimeSlot(id=f"{day.name}-1", day=day, start_time="09:00", end_time="10:00")
        for day in WEEKDAYS
    ]


def default_faculty() -> list[Faculty]:
    return [
        Faculty(id="f-ds", name="Prof Lists", eligible_subjects=frozenset({"DS"}), max_weekly_load=10),
        Faculty(id="f-alg", name="Prof Graphs", eligible_subjects=frozenset({"ALG"}), max_weekly_load=10),
    ]


def default_subjects() -> list[Subject]:
    return [
        Subject(id="DS", name="Data Structures", department="CSE", weekly_periods=2),
        Subject(id="ALG", name="Algorithms", department="CSE", weekly_periods=1),
    ]


@pytest.fixture()
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def engine_settings() -> Settings:
    # No wall-clock deadline so slow CI machines never cancel a run.
    return Settings(generation_deadline_seconds=None, max_search_steps=200_000)


@pytest.fixture()
def make_roster():
    """Roster factory; every argument defaults to the CSE-A setup."""

    def _make(
        *,
        class_groups=None,
        subjects=None,
        faculty=None,
        rooms=None,
        time_slots=None,
        curriculum=None,
    ) -> Roster:
        return Roster(
            class_groups=class_groups
            or [ClassGroup(id="CSE-A", department="CSE", label="CSE A", student_count=40)],
            subjects=subjects or default_subjects(),
            faculty=faculty or default_faculty(),
            rooms=rooms or [Room(id="R101", name="Room 101", capacity=60)],
            time_slots=time_slots or weekday_slots(),
            curriculum=curriculum if curriculum is not None else {"CSE-A": {"DS": None, "ALG": None}},
        )

    return _make


@pytest.fixture()
def cse_a_roster(make_roster) -> Roster:
    return make_roster()


@pytest.fixture()
def cse_a_payload() -> dict:
    """The CSE-A roster as the HTTP layer receives it."""
    return {
        "classGroups": [{"id": "CSE-A", "department": "CSE", "label": "CSE A", "studentCount": 40}],
        "subjects": [
            {"id": "DS", "name": "Data Structures", "department": "CSE", "weeklyPeriods": 2},
            {"id": "ALG", "name": "Algorithms", "department": "CSE", "weeklyPeriods": 1},
        ],
        "faculty": [
            {"id": "f-ds", "name": "Prof Lists", "eligibleSubjects": ["DS"], "maxWeeklyLoad": 10},
            {"id": "f-alg", "name": "Prof Graphs", "eligibleSubjects": ["ALG"], "maxWeeklyLoad": 10},
        ],
        "rooms": [{"id": "R101", "name": "Room 101", "capacity": 60}],
        "timeSlots": [
            {"id": "mon-1", "day": "Monday", "startTime": "09:00", "endTime": "10:00"},
            {"id": "tue-1", "day": "Tuesday", "startTime": "09:00", "endTime": "10:00"},
            {"id": "wed-1", "day": "Wednesday", "startTime": "09:00", "endTime": "10:00"},
            {"id": "thu-1", "day": "Thursday", "startTime": "09:00", "endTime": "10:00"},
            {"id": "fri-1", "day": "Friday", "startTime": "09:00", "endTime": "10:00"},
        ],
        "curriculum": {"CSE-A": {"DS": None, "ALG": None}},
    }
