import pytest

from app.core.exceptions import ValidationError
from app.models import ClassGroup, Day, Faculty, Room, Subject, TimeSlot


def test_slots_are_ordered_by_day_then_start_time(make_roster):
    roster = make_roster(
        time_slots=[
            TimeSlot(id="tue-1", day=Day.tue, start_time="09:00", end_time="10:00"),
            TimeSlot(id="mon-2", day=Day.mon, start_time="10:00", end_time="11:00"),
            TimeSlot(id="mon-1", day=Day.mon, start_time="09:00", end_time="10:00"),
        ],
    )

    assert [slot.id for slot in roster.ordered_slots] == ["mon-1", "mon-2", "tue-1"]
    assert roster.slot_position["tue-1"] == 2


def test_curriculum_falls_back_to_subject_periods(cse_a_roster):
    assert cse_a_roster.weekly_demand("CSE-A") == [("DS", 2), ("ALG", 1)]
    assert cse_a_roster.required_periods("CSE-A") == 3


def test_curriculum_override_replaces_subject_default(make_roster):
    roster = make_roster(curriculum={"CSE-A": {"DS": 4, "ALG": None}})
    assert roster.required_periods("CSE-A") == 5


def test_fitting_rooms_respect_class_size(make_roster):
    roster = make_roster(
        rooms=[
            Room(id="HALL", name="Hall", capacity=200),
            Room(id="LAB", name="Lab", capacity=30),
            Room(id="R101", name="Room 101", capacity=60),
        ],
    )
    assert [room.id for room in roster.fitting_rooms("CSE-A")] == ["R101", "HALL"]


def test_faculty_class_assignment_limits_eligibility(make_roster):
    roster = make_roster(
        faculty=[
            Faculty(
                id="f-ds",
                name="Prof Lists",
                eligible_subjects=frozenset({"DS"}),
                max_weekly_load=10,
                assigned_class_ids=frozenset({"CSE-B"}),
            ),
            Faculty(id="f-alg", name="Prof Graphs", eligible_subjects=frozenset({"ALG"}), max_weekly_load=10),
        ],
    )
    assert roster.eligible_faculty("DS", "CSE-A") == []

    with pytest.raises(ValidationError) as exc_info:
        roster.validate_class("CSE-A")
    assert exc_info.value.details == {"class_id": "CSE-A", "subject_id": "DS"}


def test_class_that_fits_no_room_is_rejected(make_roster):
    roster = make_roster(rooms=[Room(id="LAB", name="Lab", capacity=30)])
    with pytest.raises(ValidationError):
        roster.validate_class("CSE-A")


def test_unknown_class_lookup(cse_a_roster):
    with pytest.raises(ValidationError):
        cse_a_roster.weekly_demand("MECH-Z")


@pytest.mark.parametrize(
    "overrides",
    [
        {"subjects": [Subject(id="DS", name="A", department="CSE"), Subject(id="DS", name="B", department="CSE")]},
        {"rooms": [Room(id="R101", name="Room 101", capacity=0)]},
        {"time_slots": [TimeSlot(id="bad", day=Day.mon, start_time="9am", end_time="10:00")]},
        {"time_slots": [TimeSlot(id="back", day=Day.mon, start_time="10:00", end_time="09:00")]},
        {
            "time_slots": [
                TimeSlot(id="a", day=Day.mon, start_time="09:00", end_time="10:00"),
                TimeSlot(id="b", day=Day.mon, start_time="09:30", end_time="10:30"),
            ]
        },
        {
            "faculty": [
                Faculty(id="f-ds", name="Prof Lists", eligible_subjects=frozenset({"PHY"}), max_weekly_load=10),
            ]
        },
        {
            "faculty": [
                Faculty(
                    id="f-ds",
                    name="Prof Lists",
                    eligible_subjects=frozenset({"DS"}),
                    max_weekly_load=10,
                    available_slot_ids=frozenset({"sun-9"}),
                ),
            ]
        },
        {"faculty": [Faculty(id="f-ds", name="Prof Lists", eligible_subjects=frozenset({"DS"}), max_weekly_load=-1)]},
        {"curriculum": {"MECH-Z": {"DS": 1}}},
        {"curriculum": {"CSE-A": {"PHY": 1}}},
        {"curriculum": {"CSE-A": {"DS": 0}}},
        {
            "class_groups": [
                ClassGroup(id="CSE-A", department="CSE", label="A"),
                ClassGroup(id="CSE-A", department="CSE", label="A again"),
            ]
        },
    ],
)
def test_malformed_rosters_are_rejected(make_roster, overrides):
    with pytest.raises(ValidationError) as exc_info:
        make_roster(**overrides)
    assert exc_info.value.status_code == 422
