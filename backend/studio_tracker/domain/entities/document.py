"""Raw document shape exchanged with the document store."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


class _ServerTimestamp:
    """Sentinel written in place of a timestamp; resolved to the store clock on commit."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"

    def __reduce__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass
class Document:
    """A single stored document: its id plus a free-form field mapping."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


def to_datetime(value: Any) -> datetime | None:
    """Best-effort conversion of a stored timestamp field.

    Returns None for absent or pending (server-assigned, not yet committed)
    values so callers can pick their own fallback.
    """
    if value is None or value is SERVER_TIMESTAMP:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def first_text(*values: Any) -> str | None:
    """Return the first value that is a non-blank string."""
    for value in values:
        if isinstance(value, str) and value.strip():
            return value
    return None
