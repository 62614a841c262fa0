from __future__ import annotations

import logging
import logging.handlers

from app.core.config import BACKEND_DIR

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
ENGINE_LOG_FILE = BACKEND_DIR / "logs" / "engine.log"


def resolve_log_level(environment: str, level: str | None = None) -> int:
    """Production defaults to INFO, anything else to DEBUG; unknown names fall back to INFO."""
    if not level:
        return logging.INFO if environment == "production" else logging.DEBUG
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(*, environment: str, level: str | None = None) -> None:
    """Attach the engine's handlers to the root logger once per process.

    Generation runs log START / COMPLETE / FAILED at INFO and each backtrack
    at DEBUG, so ``LOG_LEVEL=INFO`` is the usual choice for busy deployments.
    Production also writes to ``backend/logs/engine.log``.
    """

    root = logging.getLogger()
    if root.handlers:
        return

    env = (environment or "development").lower().strip()
    resolved = resolve_log_level(env, level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    handlers: list[logging.Handler] = [console]

    if env == "production":
        ENGINE_LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        engine_file = logging.handlers.RotatingFileHandler(
            ENGINE_LOG_FILE,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        engine_file.setFormatter(formatter)
        handlers.append(engine_file)

    logging.basicConfig(level=resolved, handlers=handlers)

    # Request logs from the server follow the engine's level.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(resolved)
