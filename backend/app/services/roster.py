"""Roster context handed to every generation run.

A ``Roster`` bundles the collaborator-supplied class groups, subjects, faculty,
rooms, the institute time-slot grid and the per-class curriculum. It is
validated once at construction so malformed input never reaches the search.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from itertools import combinations
from typing import TypeVar

from app.core.exceptions import ValidationError
from app.models import ClassGroup, Faculty, Room, Subject, TimeSlot

T = TypeVar("T")


def _index_by_id(kind: str, items: Iterable[T]) -> dict[str, T]:
    indexed: dict[str, T] = {}
    duplicates: list[str] = []
    for item in items:
        item_id = getattr(item, "id")
        if item_id in indexed:
            duplicates.append(item_id)
            continue
        indexed[item_id] = item
    if duplicates:
        raise ValidationError(
            f"Duplicate {kind} id(s): {', '.join(sorted(set(duplicates)))}",
            details={"kind": kind, "ids": sorted(set(duplicates))},
        )
    return indexed


class Roster:
    def __init__(
        self,
        *,
        class_groups: Iterable[ClassGroup],
        subjects: Iterable[Subject],
        faculty: Iterable[Faculty],
        rooms: Iterable[Room],
        time_slots: Iterable[TimeSlot],
        curriculum: Mapping[str, Mapping[str, int | None]],
    ) -> None:
        self.class_groups = tuple(class_groups)
        self.subjects = tuple(subjects)
        self.faculty = tuple(faculty)
        self.rooms = tuple(rooms)
        self.time_slots = tuple(time_slots)

        self.class_by_id = _index_by_id("class", self.class_groups)
        self.subject_by_id = _index_by_id("subject", self.subjects)
        self.faculty_by_id = _index_by_id("faculty", self.faculty)
        self.room_by_id = _index_by_id("room", self.rooms)
        self.slot_by_id = _index_by_id("time slot", self.time_slots)

        self.ordered_slots: tuple[TimeSlot, ...] = self._validate_time_slots()
        self.slot_position = {slot.id: position for position, slot in enumerate(self.ordered_slots)}

        self._validate_subjects()
        self._validate_faculty()
        self._validate_rooms()
        self.curriculum = self._resolve_curriculum(curriculum)

    # ----------------------------
    # Lookups
    # ----------------------------

    def class_group(self, class_id: str) -> ClassGroup:
        group = self.class_by_id.get(class_id)
        if group is None:
            raise ValidationError(f"Unknown class id {class_id}", details={"class_id": class_id})
        return group

    def weekly_demand(self, class_id: str) -> list[tuple[str, int]]:
        """(subject_id, weekly periods) pairs in curriculum order."""
        self.class_group(class_id)
        return list(self.curriculum.get(class_id, {}).items())

    def required_periods(self, class_id: str) -> int:
        return sum(periods for _subject_id, periods in self.weekly_demand(class_id))

    def eligible_faculty(self, subject_id: str, class_id: str) -> list[Faculty]:
        return [member for member in self.faculty if member.can_teach(subject_id, class_id)]

    def fitting_rooms(self, class_id: str) -> list[Room]:
        group = self.class_group(class_id)
        fitting = [room for room in self.rooms if room.capacity >= group.student_count]
        return sorted(fitting, key=Room.sort_key)

    def slot_label(self, slot_id: str) -> str:
        slot = self.slot_by_id.get(slot_id)
        return slot.display if slot is not None else slot_id

    def faculty_name(self, faculty_id: str) -> str:
        member = self.faculty_by_id.get(faculty_id)
        return member.name if member is not None else faculty_id

    def room_name(self, room_id: str) -> str:
        room = self.room_by_id.get(room_id)
        return room.name if room is not None else room_id

    def subject_name(self, subject_id: str) -> str:
        subject = self.subject_by_id.get(subject_id)
        return subject.name if subject is not None else subject_id

    # ----------------------------
    # Validation
    # ----------------------------

    def validate_class(self, class_id: str) -> None:
        """Reject a class whose demand can never be staffed or seated."""
        demand = self.weekly_demand(class_id)
        if not demand:
            return
        for subject_id, _periods in demand:
            if not self.eligible_faculty(subject_id, class_id):
                raise ValidationError(
                    f"No eligible faculty for subject {subject_id} in class {class_id}",
                    details={"class_id": class_id, "subject_id": subject_id},
                )
        if not self.fitting_rooms(class_id):
            group = self.class_by_id[class_id]
            raise ValidationError(
                f"No room can seat class {class_id} ({group.student_count} students)",
                details={"class_id": class_id, "student_count": group.student_count},
            )

    def _validate_time_slots(self) -> tuple[TimeSlot, ...]:
        """Check each slot, then return the grid in canonical week order."""
        if not self.time_slots:
            raise ValidationError("The institute time-slot grid is empty")
        for slot in self.time_slots:
            try:
                start, end = slot.start_minutes, slot.end_minutes
            except ValueError as exc:
                raise ValidationError(str(exc), details={"slot_id": slot.id}) from exc
            if end <= start:
                raise ValidationError(
                    f"Time slot {slot.id} must end after it starts",
                    details={"slot_id": slot.id},
                )
        ordered = tuple(sorted(self.time_slots, key=TimeSlot.sort_key))
        for first, second in combinations(ordered, 2):
            if first.overlaps(second):
                raise ValidationError(
                    f"Time slots {first.id} and {second.id} overlap on {first.day.value}",
                    details={"slot_ids": [first.id, second.id]},
                )
        return ordered

    def _validate_subjects(self) -> None:
        for subject in self.subjects:
            if subject.weekly_periods <= 0:
                raise ValidationError(
                    f"Subject {subject.id} must require at least one weekly period",
                    details={"subject_id": subject.id, "weekly_periods": subject.weekly_periods},
                )

    def _validate_faculty(self) -> None:
        for member in self.faculty:
            if member.max_weekly_load < 0:
                raise ValidationError(
                    f"Faculty {member.id} has a negative weekly load cap",
                    details={"faculty_id": member.id},
                )
            unknown_subjects = sorted(member.eligible_subjects - self.subject_by_id.keys())
            if unknown_subjects:
                raise ValidationError(
                    f"Faculty {member.id} is eligible for unknown subject(s): {', '.join(unknown_subjects)}",
                    details={"faculty_id": member.id, "subject_ids": unknown_subjects},
                )
            unknown_slots = sorted(member.available_slot_ids - self.slot_by_id.keys())
            if unknown_slots:
                raise ValidationError(
                    f"Faculty {member.id} is available in unknown slot(s): {', '.join(unknown_slots)}",
                    details={"faculty_id": member.id, "slot_ids": unknown_slots},
                )

    def _validate_rooms(self) -> None:
        for room in self.rooms:
            if room.capacity < 1:
                raise ValidationError(
                    f"Room {room.id} must have a positive capacity",
                    details={"room_id": room.id},
                )

    def _resolve_curriculum(self, curriculum: Mapping[str, Mapping[str, int | None]]) -> dict[str, dict[str, int]]:
        resolved: dict[str, dict[str, int]] = {}
        for class_id, subject_periods in curriculum.items():
            if class_id not in self.class_by_id:
                raise ValidationError(
                    f"Curriculum references unknown class {class_id}",
                    details={"class_id": class_id},
                )
            resolved[class_id] = {}
            for subject_id, periods in subject_periods.items():
                subject = self.subject_by_id.get(subject_id)
                if subject is None:
                    raise ValidationError(
                        f"Curriculum for class {class_id} references unknown subject {subject_id}",
                        details={"class_id": class_id, "subject_id": subject_id},
                    )
                count = subject.weekly_periods if periods is None else int(periods)
                if count <= 0:
                    raise ValidationError(
                        f"Subject {subject_id} in class {class_id} must require at least one weekly period",
                        details={"class_id": class_id, "subject_id": subject_id, "weekly_periods": count},
                    )
                resolved[class_id][subject_id] = count
        return resolved
