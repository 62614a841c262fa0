from __future__ import annotations

import logging
from collections import Counter

from app.core.exceptions import ConflictError
from app.models import Entry

logger = logging.getLogger(__name__)


class AvailabilityIndex:
    """Occupancy of faculty, rooms and classes per time slot.

    One index belongs to one generation run (or one institute-wide
    regeneration). It is not thread-safe; callers sharing an index across
    runs must serialize access.
    """

    def __init__(self) -> None:
        self._faculty_occ: dict[tuple[str, str], str] = {}
        self._room_occ: dict[tuple[str, str], str] = {}
        self._class_occ: dict[tuple[str, str], str] = {}
        self._faculty_load: Counter[str] = Counter()
        self._entries: dict[str, Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry: Entry) -> bool:
        return self._entries.get(entry.id) == entry

    def is_faculty_free(self, faculty_id: str, slot_id: str) -> bool:
        return (faculty_id, slot_id) not in self._faculty_occ

    def is_room_free(self, room_id: str, slot_id: str) -> bool:
        return (room_id, slot_id) not in self._room_occ

    def is_class_free(self, class_id: str, slot_id: str) -> bool:
        return (class_id, slot_id) not in self._class_occ

    def faculty_load(self, faculty_id: str) -> int:
        return self._faculty_load[faculty_id]

    def entries(self) -> list[Entry]:
        """Reserved entries in reservation order."""
        return list(self._entries.values())

    def reserve(self, entry: Entry) -> None:
        clashes: dict[str, str] = {}
        holder = self._faculty_occ.get((entry.faculty_id, entry.slot_id))
        if holder is not None:
            clashes["faculty"] = holder
        holder = self._room_occ.get((entry.room_id, entry.slot_id))
        if holder is not None:
            clashes["room"] = holder
        holder = self._class_occ.get((entry.class_id, entry.slot_id))
        if holder is not None:
            clashes["class"] = holder
        if entry.id in self._entries:
            clashes["entry"] = entry.id
        if clashes:
            logger.error(
                "AVAILABILITY RESERVE REJECTED | entry=%s | slot=%s | clashes=%s",
                entry.id,
                entry.slot_id,
                clashes,
            )
            raise ConflictError(
                f"Entry {entry.id} collides with reserved entries at slot {entry.slot_id}",
                details={"entry_id": entry.id, "slot_id": entry.slot_id, "clashes": clashes},
            )

        self._faculty_occ[(entry.faculty_id, entry.slot_id)] = entry.id
        self._room_occ[(entry.room_id, entry.slot_id)] = entry.id
        self._class_occ[(entry.class_id, entry.slot_id)] = entry.id
        self._faculty_load[entry.faculty_id] += 1
        self._entries[entry.id] = entry

    def release(self, entry: Entry) -> None:
        if self._entries.get(entry.id) != entry:
            logger.error("AVAILABILITY RELEASE REJECTED | entry=%s | reason=not reserved", entry.id)
            raise ConflictError(
                f"Entry {entry.id} is not reserved in this index",
                details={"entry_id": entry.id, "slot_id": entry.slot_id},
            )

        del self._faculty_occ[(entry.faculty_id, entry.slot_id)]
        del self._room_occ[(entry.room_id, entry.slot_id)]
        del self._class_occ[(entry.class_id, entry.slot_id)]
        self._faculty_load[entry.faculty_id] -= 1
        if self._faculty_load[entry.faculty_id] <= 0:
            del self._faculty_load[entry.faculty_id]
        del self._entries[entry.id]
