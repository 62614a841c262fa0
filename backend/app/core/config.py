from functools import lru_cache
import json
from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BACKEND_DIR = Path(__file__).resolve().parents[2]
BACKEND_ENV_FILE = BACKEND_DIR / ".env"


class Settings(BaseSettings):
    # Resolve to backend/.env so `uvicorn --app-dir backend` works from any cwd.
    model_config = SettingsConfigDict(env_file=str(BACKEND_ENV_FILE), env_file_encoding="utf-8", extra="ignore")

    project_name: str = "Timetable Engine API"
    api_prefix: str = "/api"

    environment: str = "development"
    log_level: str | None = None

    default_generation_mode: Literal["strict", "best-effort"] = "strict"
    # Wall-clock bound for one generation run; None disables the deadline.
    generation_deadline_seconds: float | None = 30.0
    # Upper bound on candidate placements tried by one backtracking search.
    max_search_steps: int = 200_000

    # Rosters travel in the request body; oversized uploads are refused with 413.
    max_request_size_bytes: int = 5_000_000

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("["):
                try:
                    parsed = json.loads(stripped)
                    if isinstance(parsed, list):
                        return [str(item).strip() for item in parsed if str(item).strip()]
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("environment")
    @classmethod
    def _normalize_environment(cls, value: str) -> str:
        return (value or "development").strip().lower()

    @field_validator("generation_deadline_seconds")
    @classmethod
    def _validate_deadline(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            return None
        return value

    @field_validator("max_search_steps")
    @classmethod
    def _validate_max_search_steps(cls, value: int) -> int:
        if value < 1:
            raise ValueError("MAX_SEARCH_STEPS must be a positive integer")
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()
