from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class ConflictKind(str, Enum):
    faculty = "faculty"
    class_group = "class"
    room = "room"
    preference = "preference"
    unplaced = "unplaced"


class ConflictSeverity(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"


HARD_CONFLICT_KINDS = frozenset(
    {ConflictKind.faculty, ConflictKind.class_group, ConflictKind.room, ConflictKind.unplaced}
)


@dataclass(frozen=True)
class Conflict:
    kind: ConflictKind
    severity: ConflictSeverity
    description: str
    involved_entry_ids: tuple[str, ...] = ()
    resolved: bool = False
    class_id: str | None = None
    subject_id: str | None = None
    slot_id: str | None = None
    faculty_id: str | None = None
    room_id: str | None = None

    @property
    def is_hard(self) -> bool:
        return self.kind in HARD_CONFLICT_KINDS

    def sort_key(self) -> tuple:
        return (
            self.kind.value,
            self.slot_id or "",
            self.faculty_id or "",
            self.room_id or "",
            self.class_id or "",
            self.subject_id or "",
            self.involved_entry_ids,
            self.description,
        )

    def mark_resolved(self) -> "Conflict":
        return replace(self, resolved=True)
