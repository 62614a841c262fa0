from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models import ClassGroup, Day, Faculty, Room, Subject, TimeSlot, parse_time_to_minutes
from app.models.time_slot import TIME_PATTERN
from app.services.roster import Roster


class PayloadModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class TimeSlotPayload(PayloadModel):
    id: str = Field(min_length=1, max_length=36)
    day: str
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    label: str = Field(default="", max_length=100)

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return Day.parse(value).value

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @model_validator(mode="after")
    def validate_time_order(self) -> "TimeSlotPayload":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("endTime must be after startTime")
        return self

    def to_domain(self) -> TimeSlot:
        return TimeSlot(
            id=self.id,
            day=Day(self.day),
            start_time=self.start_time,
            end_time=self.end_time,
            label=self.label,
        )


class SubjectPayload(PayloadModel):
    id: str = Field(min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=200)
    department: str = Field(default="", max_length=200)
    weekly_periods: int = Field(default=1, alias="weeklyPeriods", ge=1, le=40)

    def to_domain(self) -> Subject:
        return Subject(id=self.id, name=self.name, department=self.department, weekly_periods=self.weekly_periods)


class FacultyPayload(PayloadModel):
    id: str = Field(min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=200)
    department: str = Field(default="", max_length=200)
    eligible_subjects: list[str] = Field(default_factory=list, alias="eligibleSubjects")
    max_weekly_load: int = Field(alias="maxWeeklyLoad", ge=0, le=200)
    available_slot_ids: list[str] = Field(default_factory=list, alias="availableSlotIds")
    assigned_class_ids: list[str] = Field(default_factory=list, alias="assignedClassIds")

    def to_domain(self) -> Faculty:
        return Faculty(
            id=self.id,
            name=self.name,
            department=self.department,
            eligible_subjects=frozenset(self.eligible_subjects),
            max_weekly_load=self.max_weekly_load,
            available_slot_ids=frozenset(self.available_slot_ids),
            assigned_class_ids=frozenset(self.assigned_class_ids),
        )


class RoomPayload(PayloadModel):
    id: str = Field(min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=100)
    capacity: int = Field(ge=1, le=5000)
    building: str = Field(default="", max_length=200)

    def to_domain(self) -> Room:
        return Room(id=self.id, name=self.name, capacity=self.capacity, building=self.building)


class ClassGroupPayload(PayloadModel):
    id: str = Field(min_length=1, max_length=36)
    department: str = Field(default="", max_length=200)
    label: str = Field(default="", max_length=100)
    student_count: int = Field(default=0, alias="studentCount", ge=0, le=5000)

    def to_domain(self) -> ClassGroup:
        return ClassGroup(
            id=self.id,
            department=self.department,
            label=self.label or self.id,
            student_count=self.student_count,
        )


class RosterPayload(PayloadModel):
    class_groups: list[ClassGroupPayload] = Field(alias="classGroups", min_length=1)
    subjects: list[SubjectPayload] = Field(min_length=1)
    faculty: list[FacultyPayload] = Field(min_length=1)
    rooms: list[RoomPayload] = Field(min_length=1)
    time_slots: list[TimeSlotPayload] = Field(alias="timeSlots", min_length=1)
    # class id -> subject id -> weekly periods (null falls back to the subject default)
    curriculum: dict[str, dict[str, int | None]] = Field(default_factory=dict)

    def to_roster(self) -> Roster:
        return Roster(
            class_groups=[item.to_domain() for item in self.class_groups],
            subjects=[item.to_domain() for item in self.subjects],
            faculty=[item.to_domain() for item in self.faculty],
            rooms=[item.to_domain() for item in self.rooms],
            time_slots=[item.to_domain() for item in self.time_slots],
            curriculum=self.curriculum,
        )
