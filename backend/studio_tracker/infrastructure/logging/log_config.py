"""Logging setup for the tracker process.

Each settings field ``log_level_<category>`` controls a group of loggers, so
the chatty ones (SQL echo, httpx connection traces, uvicorn access lines)
can be turned down while the cache and live-feed loggers stay verbose.

    from studio_tracker.infrastructure.logging.log_config import setup_logging
    setup_logging()
"""

import logging
import sys

from studio_tracker.config import Settings, get_settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s — %(message)s"

LOGGER_GROUPS: dict[str, tuple[str, ...]] = {
    "sql": ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite"),
    "http": ("httpx", "httpcore"),
    "uvicorn": ("uvicorn", "uvicorn.access", "uvicorn.error"),
    "sync": ("studio_tracker.sync", "studio_tracker.application.services"),
    "media": ("studio_tracker.infrastructure.cloudinary",),
}


def setup_logging(settings: Settings | None = None) -> dict[str, int]:
    """Apply root and per-group levels; returns the level chosen per group."""
    settings = settings or get_settings()

    root = logging.getLogger()
    root.setLevel(level_from_name(settings.log_level))
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
        root.addHandler(handler)

    applied: dict[str, int] = {}
    for group, names in LOGGER_GROUPS.items():
        level = level_from_name(getattr(settings, f"log_level_{group}", "INFO"))
        for name in names:
            logging.getLogger(name).setLevel(level)
        applied[group] = level

    logging.getLogger(__name__).debug(
        "Logging configured: root=%s %s",
        settings.log_level,
        " ".join(f"{group}={logging.getLevelName(level)}" for group, level in applied.items()),
    )
    return applied


def level_from_name(raw: str) -> int:
    """``"debug"`` → ``logging.DEBUG``; anything unrecognised is INFO."""
    level = logging.getLevelNamesMapping().get(raw.strip().upper())
    return level if level is not None else logging.INFO
