from __future__ import annotations

from pydantic import Field

from app.models import Entry, entry_id_for
from app.schemas.roster import PayloadModel


class EntryPayload(PayloadModel):
    id: str | None = Field(default=None, max_length=120)
    class_id: str = Field(alias="classId", min_length=1, max_length=36)
    subject_id: str = Field(alias="subjectId", min_length=1, max_length=36)
    faculty_id: str = Field(alias="facultyId", min_length=1, max_length=36)
    room_id: str = Field(alias="roomId", min_length=1, max_length=36)
    slot_id: str = Field(alias="slotId", min_length=1, max_length=36)

    def to_domain(self) -> Entry:
        return Entry(
            id=self.id or entry_id_for(self.class_id, self.subject_id, self.slot_id),
            class_id=self.class_id,
            subject_id=self.subject_id,
            faculty_id=self.faculty_id,
            room_id=self.room_id,
            slot_id=self.slot_id,
        )

    @classmethod
    def from_domain(cls, entry: Entry) -> "EntryPayload":
        return cls(
            id=entry.id,
            class_id=entry.class_id,
            subject_id=entry.subject_id,
            faculty_id=entry.faculty_id,
            room_id=entry.room_id,
            slot_id=entry.slot_id,
        )
