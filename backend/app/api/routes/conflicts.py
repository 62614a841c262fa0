from fastapi import APIRouter, Depends

from app.api.deps import build_scheduler, get_app_settings
from app.core.config import Settings
from app.schemas.conflict import ConflictOut, ConflictReport, DetectConflictsRequest

router = APIRouter()


@router.post("/detect", response_model=ConflictReport)
def detect_conflicts(
    payload: DetectConflictsRequest,
    settings: Settings = Depends(get_app_settings),
) -> ConflictReport:
    roster, scheduler = build_scheduler(payload.roster, payload.preferences, settings)
    entries = [item.to_domain() for item in payload.entries]

    expected = None
    if payload.check_demand:
        # Only classes that appear in the submitted entries are held to their curriculum.
        class_ids = sorted({entry.class_id for entry in entries})
        expected = {
            (class_id, subject_id): periods
            for class_id in class_ids
            for subject_id, periods in roster.weekly_demand(class_id)
        }

    conflicts = scheduler.detect_conflicts(entries, expected_periods=expected)
    hard = sum(1 for conflict in conflicts if conflict.is_hard)
    return ConflictReport(
        conflicts=[ConflictOut.from_domain(conflict) for conflict in conflicts],
        hard_conflicts=hard,
        soft_conflicts=len(conflicts) - hard,
    )
