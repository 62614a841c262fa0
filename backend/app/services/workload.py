from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from app.core.exceptions import ValidationError
from app.models import Entry
from app.services.roster import Roster


@dataclass(frozen=True)
class FacultyWorkload:
    faculty_id: str
    total_periods: int
    max_weekly_load: int
    daily_periods: dict[str, int]
    subject_ids: tuple[str, ...]

    @property
    def remaining_capacity(self) -> int:
        return max(0, self.max_weekly_load - self.total_periods)

    @property
    def overloaded(self) -> bool:
        return self.total_periods > self.max_weekly_load


def faculty_workload(roster: Roster, entries: Iterable[Entry], faculty_id: str) -> FacultyWorkload:
    member = roster.faculty_by_id.get(faculty_id)
    if member is None:
        raise ValidationError(f"Unknown faculty id {faculty_id}", details={"faculty_id": faculty_id})

    assigned = [entry for entry in entries if entry.faculty_id == faculty_id]
    daily: dict[str, int] = {}
    # Days keep canonical week order so rendered reports stay stable.
    for slot in roster.ordered_slots:
        count = sum(1 for entry in assigned if entry.slot_id == slot.id)
        if count:
            daily[slot.day.value] = daily.get(slot.day.value, 0) + count

    return FacultyWorkload(
        faculty_id=faculty_id,
        total_periods=len(assigned),
        max_weekly_load=member.max_weekly_load,
        daily_periods=daily,
        subject_ids=tuple(sorted({entry.subject_id for entry in assigned})),
    )


def workload_summary(roster: Roster, entries: Iterable[Entry]) -> list[FacultyWorkload]:
    materialized = list(entries)
    return [faculty_workload(roster, materialized, member.id) for member in roster.faculty]
