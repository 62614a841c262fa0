from collections.abc import Iterable

from app.core.config import Settings, get_settings
from app.schemas.conflict import PreferencePayload
from app.schemas.roster import RosterPayload
from app.services.roster import Roster
from app.services.scheduler import Scheduler


def get_app_settings() -> Settings:
    return get_settings()


def build_scheduler(
    roster_payload: RosterPayload,
    preferences: Iterable[PreferencePayload],
    settings: Settings,
) -> tuple[Roster, Scheduler]:
    """Validate the submitted roster and wire a scheduler around it."""
    roster = roster_payload.to_roster()
    rules = [preference.to_rule(roster) for preference in preferences]
    return roster, Scheduler(roster, settings=settings, preference_rules=rules)
