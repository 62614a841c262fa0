from app.models.class_group import ClassGroup  # noqa: F401
from app.models.conflict import (  # noqa: F401
    HARD_CONFLICT_KINDS,
    Conflict,
    ConflictKind,
    ConflictSeverity,
)
from app.models.faculty import Faculty  # noqa: F401
from app.models.room import Room  # noqa: F401
from app.models.subject import Subject  # noqa: F401
from app.models.time_slot import Day, TimeSlot, parse_time_to_minutes  # noqa: F401
from app.models.timetable import Entry, Timetable, TimetableStatus, entry_id_for  # noqa: F401
