from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from app.models.conflict import Conflict


def entry_id_for(class_id: str, subject_id: str, slot_id: str) -> str:
    return f"{class_id}:{subject_id}:{slot_id}"


@dataclass(frozen=True)
class Entry:
    id: str
    class_id: str
    subject_id: str
    faculty_id: str
    room_id: str
    slot_id: str

    @classmethod
    def place(cls, *, class_id: str, subject_id: str, faculty_id: str, room_id: str, slot_id: str) -> "Entry":
        return cls(
            id=entry_id_for(class_id, subject_id, slot_id),
            class_id=class_id,
            subject_id=subject_id,
            faculty_id=faculty_id,
            room_id=room_id,
            slot_id=slot_id,
        )


class TimetableStatus(str, Enum):
    complete = "complete"
    exhausted = "exhausted"


@dataclass(frozen=True)
class Timetable:
    id: str
    class_id: str
    semester: str
    entries: tuple[Entry, ...]
    conflicts: tuple[Conflict, ...] = ()
    status: TimetableStatus = TimetableStatus.complete
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_complete(self) -> bool:
        return self.status == TimetableStatus.complete

    def entries_for_subject(self, subject_id: str) -> list[Entry]:
        return [entry for entry in self.entries if entry.subject_id == subject_id]
