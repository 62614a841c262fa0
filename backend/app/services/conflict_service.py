from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Dict, List, Tuple

from app.core.exceptions import ValidationError
from app.models import Conflict, ConflictKind, ConflictSeverity, Day, Entry
from app.services.roster import Roster


@dataclass(frozen=True)
class PreferenceRule:
    """Soft rule; ``predicate(entry)`` returns True when the entry satisfies it."""

    name: str
    predicate: Callable[[Entry], bool]
    severity: ConflictSeverity = ConflictSeverity.medium
    description: str = ""


def avoid_slots_after(
    roster: Roster,
    faculty_id: str,
    slot_id: str,
    *,
    severity: ConflictSeverity = ConflictSeverity.medium,
) -> PreferenceRule:
    """Faculty prefers not to teach after ``slot_id`` on that slot's day."""
    cutoff = roster.slot_by_id.get(slot_id)
    if cutoff is None:
        raise ValidationError(f"Unknown slot id {slot_id} in preference rule", details={"slot_id": slot_id})

    def predicate(entry: Entry) -> bool:
        if entry.faculty_id != faculty_id:
            return True
        slot = roster.slot_by_id.get(entry.slot_id)
        if slot is None or slot.day != cutoff.day:
            return True
        return slot.start_minutes <= cutoff.start_minutes

    return PreferenceRule(
        name=f"avoid-after:{faculty_id}:{slot_id}",
        predicate=predicate,
        severity=severity,
        description=f"{roster.faculty_name(faculty_id)} prefers not to teach after {cutoff.display}",
    )


def avoid_days(
    roster: Roster,
    faculty_id: str,
    days: Iterable[Day | str],
    *,
    severity: ConflictSeverity = ConflictSeverity.low,
) -> PreferenceRule:
    try:
        blocked = frozenset(Day.parse(day) for day in days)
    except ValueError as exc:
        raise ValidationError(str(exc), details={"faculty_id": faculty_id}) from exc

    def predicate(entry: Entry) -> bool:
        if entry.faculty_id != faculty_id:
            return True
        slot = roster.slot_by_id.get(entry.slot_id)
        return slot is None or slot.day not in blocked

    labels = ", ".join(day.value for day in sorted(blocked, key=lambda day: day.order))
    return PreferenceRule(
        name=f"avoid-days:{faculty_id}:{labels}",
        predicate=predicate,
        severity=severity,
        description=f"{roster.faculty_name(faculty_id)} prefers not to teach on {labels}",
    )


class ConflictDetector:
    """Computes the complete, deduplicated conflict list for an entry set.

    Conflicts are derived from the entries alone (plus the roster for names,
    load caps and optional expected demand), so two runs over the same
    entries always agree.
    """

    def __init__(self, roster: Roster, preference_rules: Iterable[PreferenceRule] = ()):
        self.roster = roster
        self.preference_rules: Tuple[PreferenceRule, ...] = tuple(preference_rules)

    def detect_conflicts(
        self,
        entries: Iterable[Entry],
        *,
        expected_periods: Mapping[Tuple[str, str], int] | None = None,
    ) -> List[Conflict]:
        # Only exact repeats collapse; distinct entries may share a derived id.
        ordered = sorted(
            dict.fromkeys(entries),
            key=lambda entry: (entry.id, entry.class_id, entry.faculty_id, entry.room_id, entry.slot_id),
        )

        conflicts: List[Conflict] = []
        conflicts.extend(self._faculty_double_bookings(ordered))
        conflicts.extend(self._class_double_bookings(ordered))
        conflicts.extend(self._room_double_bookings(ordered))
        conflicts.extend(self._faculty_overloads(ordered))
        conflicts.extend(self._preference_violations(ordered))
        if expected_periods is not None:
            conflicts.extend(self._unplaced_demand(ordered, expected_periods))
        return sorted(set(conflicts), key=Conflict.sort_key)

    def _faculty_double_bookings(self, entries: List[Entry]) -> List[Conflict]:
        by_faculty_slot: Dict[Tuple[str, str], List[Entry]] = defaultdict(list)
        for entry in entries:
            by_faculty_slot[(entry.faculty_id, entry.slot_id)].append(entry)

        conflicts: List[Conflict] = []
        for (faculty_id, slot_id), group in by_faculty_slot.items():
            if len(group) < 2:
                continue
            conflicts.append(Conflict(
                kind=ConflictKind.faculty,
                severity=ConflictSeverity.high,
                description=(
                    f"{self.roster.faculty_name(faculty_id)} is double-booked at "
                    f"{self.roster.slot_label(slot_id)} ({len(group)} periods)"
                ),
                involved_entry_ids=tuple(sorted(entry.id for entry in group)),
                faculty_id=faculty_id,
                slot_id=slot_id,
            ))
        return conflicts

    def _class_double_bookings(self, entries: List[Entry]) -> List[Conflict]:
        by_class_slot: Dict[Tuple[str, str], List[Entry]] = defaultdict(list)
        for entry in entries:
            by_class_slot[(entry.class_id, entry.slot_id)].append(entry)

        conflicts: List[Conflict] = []
        for (class_id, slot_id), group in by_class_slot.items():
            if len(group) < 2:
                continue
            conflicts.append(Conflict(
                kind=ConflictKind.class_group,
                severity=ConflictSeverity.high,
                description=(
                    f"Class {class_id} is double-booked at "
                    f"{self.roster.slot_label(slot_id)} ({len(group)} periods)"
                ),
                involved_entry_ids=tuple(sorted(entry.id for entry in group)),
                class_id=class_id,
                slot_id=slot_id,
            ))
        return conflicts

    def _room_double_bookings(self, entries: List[Entry]) -> List[Conflict]:
        by_room_slot: Dict[Tuple[str, str], List[Entry]] = defaultdict(list)
        for entry in entries:
            by_room_slot[(entry.room_id, entry.slot_id)].append(entry)

        conflicts: List[Conflict] = []
        for (room_id, slot_id), group in by_room_slot.items():
            if len(group) < 2:
                continue
            conflicts.append(Conflict(
                kind=ConflictKind.room,
                severity=ConflictSeverity.high,
                description=(
                    f"Room {self.roster.room_name(room_id)} is double-booked at "
                    f"{self.roster.slot_label(slot_id)} ({len(group)} periods)"
                ),
                involved_entry_ids=tuple(sorted(entry.id for entry in group)),
                room_id=room_id,
                slot_id=slot_id,
            ))
        return conflicts

    def _faculty_overloads(self, entries: List[Entry]) -> List[Conflict]:
        by_faculty: Dict[str, List[Entry]] = defaultdict(list)
        for entry in entries:
            by_faculty[entry.faculty_id].append(entry)

        conflicts: List[Conflict] = []
        for faculty_id, assigned in by_faculty.items():
            member = self.roster.faculty_by_id.get(faculty_id)
            if member is None or len(assigned) <= member.max_weekly_load:
                continue
            conflicts.append(Conflict(
                kind=ConflictKind.faculty,
                severity=ConflictSeverity.high,
                description=(
                    f"{member.name} is assigned {len(assigned)} weekly periods, "
                    f"above the limit of {member.max_weekly_load}"
                ),
                involved_entry_ids=tuple(sorted(entry.id for entry in assigned)),
                faculty_id=faculty_id,
            ))
        return conflicts

    def _preference_violations(self, entries: List[Entry]) -> List[Conflict]:
        conflicts: List[Conflict] = []
        for rule in self.preference_rules:
            for entry in entries:
                if rule.predicate(entry):
                    continue
                detail = rule.description or f"Preference '{rule.name}' not met"
                conflicts.append(Conflict(
                    kind=ConflictKind.preference,
                    severity=rule.severity,
                    description=f"{detail}: {entry.subject_id} for {entry.class_id} at {self.roster.slot_label(entry.slot_id)}",
                    involved_entry_ids=(entry.id,),
                    class_id=entry.class_id,
                    subject_id=entry.subject_id,
                    slot_id=entry.slot_id,
                    faculty_id=entry.faculty_id,
                ))
        return conflicts

    def _unplaced_demand(
        self,
        entries: List[Entry],
        expected_periods: Mapping[Tuple[str, str], int],
    ) -> List[Conflict]:
        placed = Counter((entry.class_id, entry.subject_id) for entry in entries)
        conflicts: List[Conflict] = []
        for (class_id, subject_id), required in expected_periods.items():
            have = placed[(class_id, subject_id)]
            if have >= required:
                continue
            conflicts.append(Conflict(
                kind=ConflictKind.unplaced,
                severity=ConflictSeverity.high,
                description=(
                    f"Could only assign {have}/{required} weekly periods for "
                    f"{self.roster.subject_name(subject_id)} in class {class_id}"
                ),
                class_id=class_id,
                subject_id=subject_id,
            ))
        return conflicts
