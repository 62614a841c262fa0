from __future__ import annotations

import logging
import uuid
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from time import perf_counter

from app.core.config import Settings, get_settings
from app.core.exceptions import ConflictError, SchedulerError, ValidationError
from app.models import Conflict, Entry, Timetable, TimetableStatus
from app.services.assignment_generator import AssignmentGenerator, CancellationToken, GenerationResult
from app.services.availability import AvailabilityIndex
from app.services.conflict_service import ConflictDetector, PreferenceRule
from app.services.roster import Roster

logger = logging.getLogger(__name__)


class GenerationMode(str, Enum):
    strict = "strict"
    best_effort = "best-effort"


@dataclass(frozen=True)
class Override:
    """A manual placement pinned before the search starts."""

    subject_id: str
    slot_id: str
    faculty_id: str
    room_id: str


@dataclass(frozen=True)
class InstituteSchedule:
    semester: str
    timetables: tuple[Timetable, ...]
    conflicts: tuple[Conflict, ...]
    residual_conflicts: tuple[Conflict, ...]

    def timetable_for(self, class_id: str) -> Timetable | None:
        return next((timetable for timetable in self.timetables if timetable.class_id == class_id), None)


def residual_conflicts(conflicts: Iterable[Conflict]) -> list[Conflict]:
    return [conflict for conflict in conflicts if conflict.is_hard and not conflict.resolved]


class Scheduler:
    """Public entry point: generation runs plus conflict checks over a roster.

    Every ``generate`` call owns a fresh availability index, so concurrent
    calls never interfere. ``generate_institute`` shares one index across all
    classes and serializes on an instance lock.
    """

    def __init__(
        self,
        roster: Roster,
        *,
        settings: Settings | None = None,
        preference_rules: Iterable[PreferenceRule] = (),
    ) -> None:
        self.roster = roster
        self.settings = settings or get_settings()
        self.detector = ConflictDetector(roster, preference_rules)
        self._institute_lock = Lock()

    def generate(
        self,
        class_id: str,
        semester: str,
        mode: GenerationMode | str = GenerationMode.strict,
        *,
        overrides: Sequence[Override] = (),
        reserved: Sequence[Entry] = (),
        cancel_token: CancellationToken | None = None,
    ) -> tuple[Timetable, list[Conflict]]:
        mode = self._resolve_mode(mode)
        index = AvailabilityIndex()
        for entry in reserved:
            if entry.class_id == class_id:
                raise ValidationError(
                    f"Reserved entry {entry.id} belongs to the class being generated",
                    details={"entry_id": entry.id, "class_id": class_id},
                )
            self._reserve_checked(index, entry, source="reserved entry")
        return self._generate_into(
            index,
            class_id,
            semester,
            mode,
            overrides=overrides,
            cancel_token=cancel_token or self._default_token(),
        )

    def generate_institute(
        self,
        semester: str,
        mode: GenerationMode | str = GenerationMode.strict,
        *,
        overrides: Mapping[str, Sequence[Override]] | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> InstituteSchedule:
        """Regenerate every class with a curriculum over one shared index."""
        mode = self._resolve_mode(mode)
        overrides = overrides or {}
        unknown = sorted(set(overrides) - set(self.roster.class_by_id))
        if unknown:
            raise ValidationError(
                f"Overrides reference unknown class(es): {', '.join(unknown)}",
                details={"class_ids": unknown},
            )

        with self._institute_lock:
            started = perf_counter()
            token = cancel_token or self._default_token()
            index = AvailabilityIndex()
            timetables: list[Timetable] = []
            expected: dict[tuple[str, str], int] = {}
            for group in self.roster.class_groups:
                demand = self.roster.weekly_demand(group.id)
                if not demand:
                    continue
                timetable, _residual = self._generate_into(
                    index,
                    group.id,
                    semester,
                    mode,
                    overrides=overrides.get(group.id, ()),
                    cancel_token=token,
                )
                timetables.append(timetable)
                expected.update({(group.id, subject_id): periods for subject_id, periods in demand})

            union = [entry for timetable in timetables for entry in timetable.entries]
            conflicts = self.detector.detect_conflicts(union, expected_periods=expected)
            residual = residual_conflicts(conflicts)
            logger.info(
                "INSTITUTE GENERATION COMPLETE | semester=%s | mode=%s | classes=%s | entries=%s | residual=%s | wall_ms=%s",
                semester,
                mode.value,
                len(timetables),
                len(union),
                len(residual),
                int((perf_counter() - started) * 1000),
            )
            return InstituteSchedule(
                semester=semester,
                timetables=tuple(timetables),
                conflicts=tuple(conflicts),
                residual_conflicts=tuple(residual),
            )

    def detect_conflicts(
        self,
        entries: Iterable[Entry],
        *,
        expected_periods: Mapping[tuple[str, str], int] | None = None,
    ) -> list[Conflict]:
        return self.detector.detect_conflicts(entries, expected_periods=expected_periods)

    # ----------------------------
    # Internals
    # ----------------------------

    def _generate_into(
        self,
        index: AvailabilityIndex,
        class_id: str,
        semester: str,
        mode: GenerationMode,
        *,
        overrides: Sequence[Override],
        cancel_token: CancellationToken,
    ) -> tuple[Timetable, list[Conflict]]:
        started = perf_counter()
        logger.info(
            "TIMETABLE GENERATION START | class_id=%s | semester=%s | mode=%s | overrides=%s",
            class_id,
            semester,
            mode.value,
            len(overrides),
        )
        self.roster.validate_class(class_id)
        pinned = self._pin_overrides(index, class_id, overrides)

        generator = AssignmentGenerator(
            self.roster,
            index,
            max_steps=self.settings.max_search_steps,
            cancel_token=cancel_token,
        )
        try:
            result = generator.generate(class_id, pinned=pinned, partial=mode == GenerationMode.best_effort)
        except ConflictError:
            logger.exception("TIMETABLE GENERATION INDEX VIOLATION | class_id=%s | semester=%s", class_id, semester)
            raise
        except SchedulerError as exc:
            for entry in reversed(pinned):
                index.release(entry)
            logger.warning(
                "TIMETABLE GENERATION FAILED | class_id=%s | semester=%s | mode=%s | reason=%s | wall_ms=%s",
                class_id,
                semester,
                mode.value,
                exc.message,
                int((perf_counter() - started) * 1000),
            )
            raise

        timetable, residual = self._build_timetable(result, semester)
        logger.info(
            "TIMETABLE GENERATION COMPLETE | class_id=%s | semester=%s | status=%s | entries=%s | conflicts=%s | residual=%s | wall_ms=%s",
            class_id,
            semester,
            timetable.status.value,
            len(timetable.entries),
            len(timetable.conflicts),
            len(residual),
            int((perf_counter() - started) * 1000),
        )
        return timetable, residual

    def _build_timetable(self, result: GenerationResult, semester: str) -> tuple[Timetable, list[Conflict]]:
        expected = {(result.class_id, subject_id): periods for subject_id, periods in result.required.items()}
        conflicts = self.detector.detect_conflicts(result.entries, expected_periods=expected)
        status = TimetableStatus.complete if result.complete else TimetableStatus.exhausted
        timetable = Timetable(
            id=str(uuid.uuid4()),
            class_id=result.class_id,
            semester=semester,
            entries=tuple(result.entries),
            conflicts=tuple(conflicts),
            status=status,
        )
        return timetable, residual_conflicts(conflicts)

    def _pin_overrides(self, index: AvailabilityIndex, class_id: str, overrides: Sequence[Override]) -> list[Entry]:
        if not overrides:
            return []
        group = self.roster.class_group(class_id)
        required = dict(self.roster.weekly_demand(class_id))
        per_subject: Counter[str] = Counter()
        pinned: list[Entry] = []
        try:
            for override in overrides:
                details = {
                    "class_id": class_id,
                    "subject_id": override.subject_id,
                    "slot_id": override.slot_id,
                    "faculty_id": override.faculty_id,
                    "room_id": override.room_id,
                }
                if override.subject_id not in required:
                    raise ValidationError(
                        f"Override subject {override.subject_id} is not in the curriculum of class {class_id}",
                        details=details,
                    )
                if override.slot_id not in self.roster.slot_by_id:
                    raise ValidationError(f"Override references unknown slot {override.slot_id}", details=details)
                room = self.roster.room_by_id.get(override.room_id)
                if room is None:
                    raise ValidationError(f"Override references unknown room {override.room_id}", details=details)
                if room.capacity < group.student_count:
                    raise ValidationError(
                        f"Room {room.id} cannot seat class {class_id} ({group.student_count} students)",
                        details=details,
                    )
                member = self.roster.faculty_by_id.get(override.faculty_id)
                if member is None:
                    raise ValidationError(f"Override references unknown faculty {override.faculty_id}", details=details)
                if not member.can_teach(override.subject_id, class_id):
                    raise ValidationError(
                        f"Faculty {member.id} is not eligible to teach {override.subject_id} to class {class_id}",
                        details=details,
                    )
                if not member.is_available(override.slot_id):
                    raise ValidationError(
                        f"Faculty {member.id} is not available at {self.roster.slot_label(override.slot_id)}",
                        details=details,
                    )
                if index.faculty_load(member.id) >= member.max_weekly_load:
                    raise ValidationError(
                        f"Faculty {member.id} has no weekly load left for override",
                        details=details,
                    )
                per_subject[override.subject_id] += 1
                if per_subject[override.subject_id] > required[override.subject_id]:
                    raise ValidationError(
                        f"Overrides exceed the weekly periods of {override.subject_id} for class {class_id}",
                        details=details,
                    )
                entry = Entry.place(
                    class_id=class_id,
                    subject_id=override.subject_id,
                    faculty_id=override.faculty_id,
                    room_id=override.room_id,
                    slot_id=override.slot_id,
                )
                self._reserve_checked(index, entry, source="override")
                pinned.append(entry)
        except ValidationError:
            for entry in reversed(pinned):
                index.release(entry)
            raise
        return pinned

    def _reserve_checked(self, index: AvailabilityIndex, entry: Entry, *, source: str) -> None:
        """Reserve caller-supplied entries, reporting collisions as bad input."""
        clashes = []
        if not index.is_class_free(entry.class_id, entry.slot_id):
            clashes.append(f"class {entry.class_id}")
        if not index.is_faculty_free(entry.faculty_id, entry.slot_id):
            clashes.append(f"faculty {entry.faculty_id}")
        if not index.is_room_free(entry.room_id, entry.slot_id):
            clashes.append(f"room {entry.room_id}")
        if clashes:
            raise ValidationError(
                f"The {source} {entry.id} collides at {self.roster.slot_label(entry.slot_id)}: {', '.join(clashes)}",
                details={"entry_id": entry.id, "slot_id": entry.slot_id, "clashes": clashes},
            )
        index.reserve(entry)

    def _default_token(self) -> CancellationToken:
        return CancellationToken(deadline_seconds=self.settings.generation_deadline_seconds)

    @staticmethod
    def _resolve_mode(mode: GenerationMode | str) -> GenerationMode:
        try:
            return GenerationMode(mode)
        except ValueError:
            raise ValidationError(
                f"Unknown generation mode {mode!r}",
                details={"mode": str(mode), "allowed": [item.value for item in GenerationMode]},
            ) from None
