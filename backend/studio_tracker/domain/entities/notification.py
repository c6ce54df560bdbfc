"""Domain entities for per-user notifications and the toasts they raise."""

from dataclasses import dataclass
from datetime import datetime, timezone

from .document import Document, to_datetime


@dataclass
class NotificationRecord:
    """A notification addressed to one user.

    Records are only ever marked read or deleted; the unread count is always
    derived from ``read`` and never stored.
    """

    id: str
    user_id: str
    title: str
    body: str
    type: str  # "project" | "video" | "script" | "postproduction" | "chat"
    created_at: datetime
    link: str | None = None
    read: bool = False

    @classmethod
    def from_document(cls, doc: Document) -> "NotificationRecord":
        return cls(
            id=doc.id,
            user_id=str(doc.get("userId", "")),
            title=doc.get("title") or "",
            body=doc.get("body") or "",
            type=doc.get("type") or "general",
            link=doc.get("link"),
            read=bool(doc.get("read", False)),
            # Pending server timestamps read back as "now".
            created_at=to_datetime(doc.get("createdAt")) or datetime.now(timezone.utc),
        )


@dataclass(frozen=True)
class ToastEvent:
    """Ephemeral in-app alert for a newly arrived notification."""

    notification_id: str
    title: str
    body: str
    type: str
    link: str | None = None
    dismiss_after_seconds: int = 5
