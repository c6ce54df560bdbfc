"""Local key/value storage persisted to a single JSON file.

Layout:
    <path>  — ``{"<key>": "<string value>", ...}``
"""

import json
import logging
from pathlib import Path

from studio_tracker.application.interfaces import LocalStorage

logger = logging.getLogger(__name__)


class JsonFileLocalStorage(LocalStorage):
    """Infrastructure adapter for durable local key/value storage."""

    def __init__(self, path: str):
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._items: dict[str, str] = self._load()

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value
        self._save()

    def remove_item(self, key: str) -> None:
        if self._items.pop(key, None) is not None:
            self._save()

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Local storage file %s is unreadable, starting empty: %s", self._path, exc)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Local storage file %s does not hold an object, starting empty", self._path)
            return {}
        return {str(k): str(v) for k, v in raw.items()}

    def _save(self) -> None:
        # Write-then-rename so a crash never leaves a half-written file.
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(self._items, indent=2, sort_keys=True), encoding="utf-8")
        tmp.replace(self._path)
