from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Faculty:
    id: str
    name: str
    eligible_subjects: frozenset[str]
    max_weekly_load: int
    department: str = ""
    # Empty means available in every slot of the grid.
    available_slot_ids: frozenset[str] = field(default_factory=frozenset)
    # Empty means the faculty member may teach any class.
    assigned_class_ids: frozenset[str] = field(default_factory=frozenset)

    def can_teach(self, subject_id: str, class_id: str) -> bool:
        if subject_id not in self.eligible_subjects:
            return False
        return not self.assigned_class_ids or class_id in self.assigned_class_ids

    def is_available(self, slot_id: str) -> bool:
        return not self.available_slot_ids or slot_id in self.available_slot_ids
