"""Colored sync logger — ANSI-colored console lines for cache and live-feed activity.

One colour per kind of traffic so a terminal tail shows at a glance what the
runtime is doing:

    🟡 FETCH      one-shot store reads behind a cache
    🔵 SUBSCRIBE  live feeds attaching
    🟣 TOAST      new notifications surfaced to the user
    🟠 WRITE      store writes and notification fan-out

Failures are always red; per-item chatter goes out at DEBUG in gray.
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator, NamedTuple

_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_RED = "\033[91m"
_GREEN = "\033[92m"
_GRAY = "\033[90m"


class Stage(NamedTuple):
    label: str
    color: str
    icon: str


class SyncStage:
    FETCH = Stage("FETCH", "\033[93m", "📥")
    SUBSCRIBE = Stage("SUBSCRIBE", "\033[94m", "📡")
    TOAST = Stage("TOAST", "\033[95m", "🔔")
    WRITE = Stage("WRITE", "\033[96m", "✏️")


def _context(fields: dict[str, Any], tone: str = _GRAY) -> str:
    if not fields:
        return ""
    return f" {tone}({', '.join(f'{k}={v}' for k, v in fields.items())}){_RESET}"


class SyncLogger:
    """Stage-tagged logger used by the cache store and the live engines.

    Usage:
        log = SyncLogger("studio_tracker.sync.cache")
        with log.timed_step(SyncStage.FETCH, "Reading projects"):
            docs = await store.get_all(query)
        log.detail("projects served from cache", count=12)
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)

    def step_start(self, stage: Stage, message: str, **fields: Any) -> None:
        self._logger.info(
            "%s%s%s [%s]%s %s%s",
            stage.color, _BOLD, stage.icon, stage.label, _RESET,
            message, _context(fields),
        )

    def step_complete(self, stage: Stage, message: str, **fields: Any) -> None:
        self._logger.info(
            "%s%s [%s]%s %s✓ %s%s%s",
            stage.color, stage.icon, stage.label, _RESET,
            _GREEN, message, _RESET, _context(fields),
        )

    def step_error(self, stage: Stage, message: str, error: BaseException | None = None) -> None:
        cause = f" {_DIM}→ {type(error).__name__}: {error}{_RESET}" if error else ""
        self._logger.error(
            "%s%s❌ [%s] %s%s%s", _RED, _BOLD, stage.label, message, _RESET, cause
        )

    def detail(self, message: str, **fields: Any) -> None:
        self._logger.debug("   %s├─ %s%s%s", _GRAY, message, _RESET, _context(fields, _DIM))

    @contextmanager
    def timed_step(self, stage: Stage, message: str, **fields: Any) -> Iterator[None]:
        """Log ``message`` on entry and again with the elapsed time on exit.

        An exception is logged red with its elapsed time and re-raised.
        """
        self.step_start(stage, message, **fields)
        started = time.perf_counter()
        try:
            yield
        except Exception as exc:
            self.step_error(stage, f"{message} failed after {time.perf_counter() - started:.2f}s", error=exc)
            raise
        self.step_complete(stage, f"{message} in {time.perf_counter() - started:.2f}s", **fields)
