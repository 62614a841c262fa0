from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator

from app.schemas.conflict import ConflictOut, PreferencePayload
from app.schemas.entry import EntryPayload
from app.schemas.roster import PayloadModel, RosterPayload
from app.schemas.timetable import TimetableOut
from app.services.scheduler import Override

GenerationModeValue = Literal["strict", "best-effort"]


class OverridePayload(PayloadModel):
    subject_id: str = Field(alias="subjectId", min_length=1, max_length=36)
    slot_id: str = Field(alias="slotId", min_length=1, max_length=36)
    faculty_id: str = Field(alias="facultyId", min_length=1, max_length=36)
    room_id: str = Field(alias="roomId", min_length=1, max_length=36)

    def to_domain(self) -> Override:
        return Override(
            subject_id=self.subject_id,
            slot_id=self.slot_id,
            faculty_id=self.faculty_id,
            room_id=self.room_id,
        )


class GenerationRequestBase(PayloadModel):
    roster: RosterPayload
    semester: str = Field(min_length=1, max_length=50)
    # None falls back to DEFAULT_GENERATION_MODE.
    mode: GenerationModeValue | None = None
    preferences: list[PreferencePayload] = Field(default_factory=list)

    @field_validator("semester")
    @classmethod
    def normalize_semester(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("semester must not be blank")
        return stripped


class GenerateTimetableRequest(GenerationRequestBase):
    class_id: str = Field(alias="classId", min_length=1, max_length=36)
    overrides: list[OverridePayload] = Field(default_factory=list)
    reserved: list[EntryPayload] = Field(default_factory=list)


class GenerateTimetableResponse(PayloadModel):
    timetable: TimetableOut
    residual_conflicts: list[ConflictOut] = Field(alias="residualConflicts")
    runtime_ms: int = Field(alias="runtimeMs")


class GenerateInstituteRequest(GenerationRequestBase):
    # class id -> manual placements for that class
    overrides: dict[str, list[OverridePayload]] = Field(default_factory=dict)


class GenerateInstituteResponse(PayloadModel):
    semester: str
    timetables: list[TimetableOut]
    conflicts: list[ConflictOut]
    residual_conflicts: list[ConflictOut] = Field(alias="residualConflicts")
    runtime_ms: int = Field(alias="runtimeMs")
