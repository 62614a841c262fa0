from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import Field, model_validator

from app.models import Conflict, ConflictSeverity
from app.schemas.entry import EntryPayload
from app.schemas.roster import PayloadModel, RosterPayload
from app.services.conflict_service import PreferenceRule, avoid_days, avoid_slots_after
from app.services.roster import Roster


class ConflictOut(PayloadModel):
    kind: Literal["faculty", "class", "room", "preference", "unplaced"]
    severity: Literal["high", "medium", "low"]
    description: str
    involved_entry_ids: List[str] = Field(alias="involvedEntryIds")
    resolved: bool
    class_id: Optional[str] = Field(default=None, alias="classId")
    subject_id: Optional[str] = Field(default=None, alias="subjectId")
    slot_id: Optional[str] = Field(default=None, alias="slotId")
    faculty_id: Optional[str] = Field(default=None, alias="facultyId")
    room_id: Optional[str] = Field(default=None, alias="roomId")

    @classmethod
    def from_domain(cls, conflict: Conflict) -> "ConflictOut":
        return cls(
            kind=conflict.kind.value,
            severity=conflict.severity.value,
            description=conflict.description,
            involved_entry_ids=list(conflict.involved_entry_ids),
            resolved=conflict.resolved,
            class_id=conflict.class_id,
            subject_id=conflict.subject_id,
            slot_id=conflict.slot_id,
            faculty_id=conflict.faculty_id,
            room_id=conflict.room_id,
        )


class PreferencePayload(PayloadModel):
    rule: Literal["avoid_after", "avoid_days"]
    faculty_id: str = Field(alias="facultyId", min_length=1, max_length=36)
    slot_id: Optional[str] = Field(default=None, alias="slotId")
    days: List[str] = Field(default_factory=list)
    severity: Optional[Literal["high", "medium", "low"]] = None

    @model_validator(mode="after")
    def validate_rule_arguments(self) -> "PreferencePayload":
        if self.rule == "avoid_after" and not self.slot_id:
            raise ValueError("avoid_after preferences require slotId")
        if self.rule == "avoid_days" and not self.days:
            raise ValueError("avoid_days preferences require at least one day")
        return self

    def to_rule(self, roster: Roster) -> PreferenceRule:
        if self.rule == "avoid_after":
            severity = ConflictSeverity(self.severity or "medium")
            return avoid_slots_after(roster, self.faculty_id, self.slot_id, severity=severity)
        severity = ConflictSeverity(self.severity or "low")
        return avoid_days(roster, self.faculty_id, self.days, severity=severity)


class DetectConflictsRequest(PayloadModel):
    roster: RosterPayload
    entries: List[EntryPayload]
    preferences: List[PreferencePayload] = Field(default_factory=list)
    check_demand: bool = Field(default=False, alias="checkDemand")


class ConflictReport(PayloadModel):
    conflicts: List[ConflictOut]
    hard_conflicts: int = Field(alias="hardConflicts")
    soft_conflicts: int = Field(alias="softConflicts")
