"""Deterministic backtracking placement of one class's weekly demand.

Every subject in a class curriculum contributes ``weekly_periods`` demand
units. Units are ordered most-constrained-first and placed one at a time in
canonical slot order; a dead end releases the most recent placement of the
class and resumes it with its next candidate.

Two refinements keep the search small without losing solutions:

- units of the same subject are placed in strictly increasing slot order,
  since a class never holds two periods in one slot;
- within one (slot, faculty) only the first free room is tried, because the
  room taken by this class at a slot cannot affect any other unit of the
  same class.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum
from threading import Event
from time import perf_counter

from app.core.exceptions import GenerationCancelledError, UnsatisfiableError
from app.models import Entry, Faculty, Room, TimeSlot
from app.services.availability import AvailabilityIndex
from app.services.roster import Roster

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    idle = "idle"
    placing = "placing"
    backtracking = "backtracking"
    complete = "complete"
    exhausted = "exhausted"


class CancellationToken:
    """Cooperative cancellation, optionally bounded by a wall-clock deadline."""

    def __init__(self, *, deadline_seconds: float | None = None) -> None:
        self._event = Event()
        self._deadline = perf_counter() + deadline_seconds if deadline_seconds else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and perf_counter() >= self._deadline:
            self._event.set()
            return True
        return False


@dataclass(frozen=True)
class DemandUnit:
    subject_id: str
    ordinal: int
    faculty_options: int
    room_options: int

    def priority_key(self) -> tuple:
        return (self.faculty_options, self.room_options, self.subject_id, self.ordinal)


@dataclass
class GenerationResult:
    class_id: str
    entries: list[Entry]
    required: dict[str, int]
    unplaced: dict[str, int] = field(default_factory=dict)
    state: RunState = RunState.complete
    cancelled: bool = False
    steps: int = 0
    backtracks: int = 0

    @property
    def complete(self) -> bool:
        return not self.unplaced


@dataclass
class _SearchOutcome:
    placed: list[Entry]
    blocking: DemandUnit | None = None
    stopped: str | None = None  # "cancelled" | "budget"


class AssignmentGenerator:
    def __init__(
        self,
        roster: Roster,
        index: AvailabilityIndex,
        *,
        max_steps: int = 200_000,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        self.roster = roster
        self.index = index
        self.max_steps = max_steps
        self.cancel_token = cancel_token
        self.state = RunState.idle
        self.steps = 0
        self.backtracks = 0

    def generate(
        self,
        class_id: str,
        *,
        pinned: Sequence[Entry] = (),
        partial: bool = False,
    ) -> GenerationResult:
        """Place the remaining weekly demand of ``class_id``.

        ``pinned`` entries must already be reserved in the index; they count
        toward their subject's demand. With ``partial=False`` an unplaceable
        subject raises ``UnsatisfiableError``; with ``partial=True`` the best
        placement found is kept and the shortfall reported in ``unplaced``.
        """
        self.roster.validate_class(class_id)
        started = perf_counter()
        self.state = RunState.placing
        self.steps = 0
        self.backtracks = 0

        required = dict(self.roster.weekly_demand(class_id))
        pinned_counts = Counter(entry.subject_id for entry in pinned)
        units = self._build_units(class_id, required, pinned_counts)
        unplaced: Counter[str] = Counter()

        logger.info(
            "CLASS PLACEMENT START | class_id=%s | units=%s | pinned=%s | partial=%s",
            class_id,
            len(units),
            len(pinned),
            partial,
        )

        units = self._apply_capacity_precheck(class_id, units, required, pinned_counts, unplaced, partial)

        placed: list[Entry] = []
        cancelled = False
        while True:
            outcome = self._search(class_id, units)
            placed = outcome.placed
            if outcome.stopped is not None:
                cancelled = outcome.stopped == "cancelled"
                placed_units = Counter(entry.subject_id for entry in placed)
                for unit in units:
                    if placed_units[unit.subject_id] > 0:
                        placed_units[unit.subject_id] -= 1
                    else:
                        unplaced[unit.subject_id] += 1
                if not partial:
                    self._release_all(placed)
                    self.state = RunState.exhausted
                    self._raise_stopped(class_id, required, pinned_counts, placed, cancelled)
                break
            if outcome.blocking is None:
                break
            if not partial:
                self.state = RunState.exhausted
                blocking = outcome.blocking
                logger.info(
                    "CLASS PLACEMENT EXHAUSTED | class_id=%s | subject_id=%s | steps=%s | backtracks=%s",
                    class_id,
                    blocking.subject_id,
                    self.steps,
                    self.backtracks,
                )
                raise UnsatisfiableError(
                    subject_id=blocking.subject_id,
                    class_id=class_id,
                    placed=blocking.ordinal,
                    required=required[blocking.subject_id],
                )
            # Best effort: drop the unit that blocked the deepest placement and search again.
            unplaced[outcome.blocking.subject_id] += 1
            units = [unit for unit in units if unit != outcome.blocking]
            logger.debug(
                "CLASS PLACEMENT DROP UNIT | class_id=%s | subject_id=%s | ordinal=%s",
                class_id,
                outcome.blocking.subject_id,
                outcome.blocking.ordinal,
            )

        entries = sorted(
            [*pinned, *placed],
            key=lambda entry: (self.roster.slot_position[entry.slot_id], entry.subject_id),
        )
        result = GenerationResult(
            class_id=class_id,
            entries=entries,
            required=required,
            unplaced={subject_id: count for subject_id, count in unplaced.items() if count > 0},
            cancelled=cancelled,
            steps=self.steps,
            backtracks=self.backtracks,
        )
        self.state = RunState.complete if result.complete else RunState.exhausted
        result.state = self.state
        logger.info(
            "CLASS PLACEMENT COMPLETE | class_id=%s | state=%s | placed=%s | unplaced=%s | steps=%s | backtracks=%s | runtime_ms=%s",
            class_id,
            result.state.value,
            len(entries),
            sum(result.unplaced.values()),
            self.steps,
            self.backtracks,
            int((perf_counter() - started) * 1000),
        )
        return result

    # ----------------------------
    # Demand units
    # ----------------------------

    def _build_units(
        self,
        class_id: str,
        required: dict[str, int],
        pinned_counts: Counter[str],
    ) -> list[DemandUnit]:
        units: list[DemandUnit] = []
        for subject_id, periods in required.items():
            faculty = self.roster.eligible_faculty(subject_id, class_id)
            room_options = self._room_options(class_id, faculty)
            start = pinned_counts[subject_id]
            for ordinal in range(start, periods):
                units.append(
                    DemandUnit(
                        subject_id=subject_id,
                        ordinal=ordinal,
                        faculty_options=len(faculty),
                        room_options=room_options,
                    )
                )
        return sorted(units, key=DemandUnit.priority_key)

    def _room_options(self, class_id: str, faculty: list[Faculty]) -> int:
        """Free fitting (slot, room) pairs in slots some eligible faculty can teach."""
        rooms = self.roster.fitting_rooms(class_id)
        count = 0
        for slot in self.roster.ordered_slots:
            if not any(member.is_available(slot.id) for member in faculty):
                continue
            count += sum(1 for room in rooms if self.index.is_room_free(room.id, slot.id))
        return count

    def _apply_capacity_precheck(
        self,
        class_id: str,
        units: list[DemandUnit],
        required: dict[str, int],
        pinned_counts: Counter[str],
        unplaced: Counter[str],
        partial: bool,
    ) -> list[DemandUnit]:
        """Cap each subject's units at the number of slots it could ever use."""
        wanted = Counter(unit.subject_id for unit in units)
        kept: list[DemandUnit] = []
        for subject_id in required:
            if wanted[subject_id] == 0:
                continue
            usable = sum(1 for _slot in self._usable_slots(class_id, subject_id))
            if usable >= wanted[subject_id]:
                continue
            if not partial:
                self.state = RunState.exhausted
                raise UnsatisfiableError(
                    subject_id=subject_id,
                    class_id=class_id,
                    placed=pinned_counts[subject_id] + usable,
                    required=required[subject_id],
                    reason=f"only {usable} usable slot(s) for {wanted[subject_id]} remaining period(s)",
                )
            unplaced[subject_id] += wanted[subject_id] - usable
            wanted[subject_id] = usable
        for unit in units:
            if wanted[unit.subject_id] > 0:
                kept.append(unit)
                wanted[unit.subject_id] -= 1
        return kept

    def _usable_slots(self, class_id: str, subject_id: str) -> Iterator[TimeSlot]:
        faculty = self.roster.eligible_faculty(subject_id, class_id)
        rooms = self.roster.fitting_rooms(class_id)
        for slot in self.roster.ordered_slots:
            if not self.index.is_class_free(class_id, slot.id):
                continue
            if self._first_free_room(rooms, slot) is None:
                continue
            if self._ranked_faculty(faculty, slot):
                yield slot

    # ----------------------------
    # Search
    # ----------------------------

    def _search(self, class_id: str, units: list[DemandUnit]) -> _SearchOutcome:
        cursors: list[Iterator[tuple[TimeSlot, Faculty, Room]]] = []
        placed: list[Entry] = []
        best: list[Entry] = []
        depth = 0

        while depth < len(units):
            if self.cancel_token is not None and self.cancel_token.cancelled:
                return self._stop(placed, best, "cancelled")
            if self.steps >= self.max_steps:
                return self._stop(placed, best, "budget")

            unit = units[depth]
            if depth == len(cursors):
                floor = -1
                if depth > 0 and units[depth - 1].subject_id == unit.subject_id:
                    floor = self.roster.slot_position[placed[-1].slot_id]
                cursors.append(self._candidates(class_id, unit.subject_id, floor))

            self.steps += 1
            candidate = next(cursors[depth], None)
            if candidate is None:
                cursors.pop()
                if depth == 0:
                    return _SearchOutcome(placed=[], blocking=units[len(best)])
                depth -= 1
                self.state = RunState.backtracking
                self.backtracks += 1
                undone = placed.pop()
                self.index.release(undone)
                logger.debug(
                    "BACKTRACK | class_id=%s | subject_id=%s | released=%s | depth=%s",
                    class_id,
                    unit.subject_id,
                    undone.id,
                    depth,
                )
                continue

            slot, member, room = candidate
            entry = Entry.place(
                class_id=class_id,
                subject_id=unit.subject_id,
                faculty_id=member.id,
                room_id=room.id,
                slot_id=slot.id,
            )
            self.index.reserve(entry)
            placed.append(entry)
            depth += 1
            self.state = RunState.placing
            if len(placed) > len(best):
                best = list(placed)

        return _SearchOutcome(placed=placed)

    def _candidates(self, class_id: str, subject_id: str, floor: int) -> Iterator[tuple[TimeSlot, Faculty, Room]]:
        faculty = self.roster.eligible_faculty(subject_id, class_id)
        rooms = self.roster.fitting_rooms(class_id)
        for slot in self.roster.ordered_slots[floor + 1:]:
            if not self.index.is_class_free(class_id, slot.id):
                continue
            room = self._first_free_room(rooms, slot)
            if room is None:
                continue
            for member in self._ranked_faculty(faculty, slot):
                yield slot, member, room

    def _ranked_faculty(self, faculty: list[Faculty], slot: TimeSlot) -> list[Faculty]:
        free = [
            member
            for member in faculty
            if member.is_available(slot.id)
            and self.index.is_faculty_free(member.id, slot.id)
            and self.index.faculty_load(member.id) < member.max_weekly_load
        ]
        return sorted(free, key=lambda member: (self.index.faculty_load(member.id), member.id))

    def _first_free_room(self, rooms: list[Room], slot: TimeSlot) -> Room | None:
        for room in rooms:
            if self.index.is_room_free(room.id, slot.id):
                return room
        return None

    def _stop(self, placed: list[Entry], best: list[Entry], reason: str) -> _SearchOutcome:
        """Swap the live placement for the deepest one seen before stopping."""
        self._release_all(placed)
        for entry in best:
            self.index.reserve(entry)
        self.state = RunState.exhausted
        logger.warning(
            "CLASS PLACEMENT STOPPED | reason=%s | kept=%s | steps=%s",
            reason,
            len(best),
            self.steps,
        )
        return _SearchOutcome(placed=list(best), stopped=reason)

    def _release_all(self, placed: list[Entry]) -> None:
        for entry in reversed(placed):
            self.index.release(entry)

    def _raise_stopped(
        self,
        class_id: str,
        required: dict[str, int],
        pinned_counts: Counter[str],
        placed: list[Entry],
        cancelled: bool,
    ) -> None:
        placed_total = len(placed) + sum(pinned_counts.values())
        required_total = sum(required.values())
        if cancelled:
            raise GenerationCancelledError(class_id=class_id, placed=placed_total, required=required_total)
        placed_by_subject = Counter(entry.subject_id for entry in placed) + pinned_counts
        short = next(
            (subject_id for subject_id, count in required.items() if placed_by_subject[subject_id] < count),
            next(iter(required)),
        )
        raise UnsatisfiableError(
            subject_id=short,
            class_id=class_id,
            placed=placed_by_subject[short],
            required=required[short],
            reason="search budget exhausted",
        )
