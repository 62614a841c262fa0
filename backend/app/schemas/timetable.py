from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from app.models import Timetable
from app.schemas.conflict import ConflictOut
from app.schemas.entry import EntryPayload
from app.schemas.roster import PayloadModel, RosterPayload
from app.services.workload import FacultyWorkload


class TimetableOut(PayloadModel):
    id: str
    class_id: str = Field(alias="classId")
    semester: str
    status: Literal["complete", "exhausted"]
    generated_at: datetime = Field(alias="generatedAt")
    entries: list[EntryPayload]
    conflicts: list[ConflictOut]

    @classmethod
    def from_domain(cls, timetable: Timetable) -> "TimetableOut":
        return cls(
            id=timetable.id,
            class_id=timetable.class_id,
            semester=timetable.semester,
            status=timetable.status.value,
            generated_at=timetable.generated_at,
            entries=[EntryPayload.from_domain(entry) for entry in timetable.entries],
            conflicts=[ConflictOut.from_domain(conflict) for conflict in timetable.conflicts],
        )


class WorkloadRequest(PayloadModel):
    roster: RosterPayload
    entries: list[EntryPayload]
    faculty_id: str | None = Field(default=None, alias="facultyId")


class FacultyWorkloadOut(PayloadModel):
    faculty_id: str = Field(alias="facultyId")
    total_periods: int = Field(alias="totalPeriods")
    max_weekly_load: int = Field(alias="maxWeeklyLoad")
    remaining_capacity: int = Field(alias="remainingCapacity")
    overloaded: bool
    daily_periods: dict[str, int] = Field(alias="dailyPeriods")
    subject_ids: list[str] = Field(alias="subjectIds")

    @classmethod
    def from_domain(cls, workload: FacultyWorkload) -> "FacultyWorkloadOut":
        return cls(
            faculty_id=workload.faculty_id,
            total_periods=workload.total_periods,
            max_weekly_load=workload.max_weekly_load,
            remaining_capacity=workload.remaining_capacity,
            overloaded=workload.overloaded,
            daily_periods=dict(workload.daily_periods),
            subject_ids=list(workload.subject_ids),
        )


class WorkloadReport(PayloadModel):
    workloads: list[FacultyWorkloadOut]
