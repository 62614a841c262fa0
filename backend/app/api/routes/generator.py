import logging
from time import perf_counter

from fastapi import APIRouter, Depends

from app.api.deps import build_scheduler, get_app_settings
from app.core.config import Settings
from app.schemas.conflict import ConflictOut
from app.schemas.generator import (
    GenerateInstituteRequest,
    GenerateInstituteResponse,
    GenerateTimetableRequest,
    GenerateTimetableResponse,
)
from app.schemas.timetable import TimetableOut

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/timetable/generate", response_model=GenerateTimetableResponse)
def generate_timetable(
    payload: GenerateTimetableRequest,
    settings: Settings = Depends(get_app_settings),
) -> GenerateTimetableResponse:
    started = perf_counter()
    mode = payload.mode or settings.default_generation_mode
    logger.info(
        "TIMETABLE GENERATION REQUEST | class_id=%s | semester=%s | mode=%s | overrides=%s | reserved=%s",
        payload.class_id,
        payload.semester,
        mode,
        len(payload.overrides),
        len(payload.reserved),
    )
    _, scheduler = build_scheduler(payload.roster, payload.preferences, settings)
    timetable, residual = scheduler.generate(
        payload.class_id,
        payload.semester,
        mode,
        overrides=[item.to_domain() for item in payload.overrides],
        reserved=[item.to_domain() for item in payload.reserved],
    )
    return GenerateTimetableResponse(
        timetable=TimetableOut.from_domain(timetable),
        residual_conflicts=[ConflictOut.from_domain(conflict) for conflict in residual],
        runtime_ms=int((perf_counter() - started) * 1000),
    )


@router.post("/timetable/generate-institute", response_model=GenerateInstituteResponse)
def generate_institute_timetables(
    payload: GenerateInstituteRequest,
    settings: Settings = Depends(get_app_settings),
) -> GenerateInstituteResponse:
    started = perf_counter()
    mode = payload.mode or settings.default_generation_mode
    logger.info(
        "INSTITUTE GENERATION REQUEST | semester=%s | mode=%s | classes=%s",
        payload.semester,
        mode,
        len(payload.roster.class_groups),
    )
    _, scheduler = build_scheduler(payload.roster, payload.preferences, settings)
    schedule = scheduler.generate_institute(
        payload.semester,
        mode,
        overrides={
            class_id: [item.to_domain() for item in items]
            for class_id, items in payload.overrides.items()
        },
    )
    return GenerateInstituteResponse(
        semester=schedule.semester,
        timetables=[TimetableOut.from_domain(timetable) for timetable in schedule.timetables],
        conflicts=[ConflictOut.from_domain(conflict) for conflict in schedule.conflicts],
        residual_conflicts=[ConflictOut.from_domain(conflict) for conflict in schedule.residual_conflicts],
        runtime_ms=int((perf_counter() - started) * 1000),
    )
