"""Domain entities for team chat — messages, mentions and entity references."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .document import Document, to_datetime


class ReferenceType(str, Enum):
    """Entity kinds a chat message can reference with ``#type:name``."""

    PROJECT = "project"
    VIDEO = "video"
    SCRIPT = "script"
    POST_PRODUCTION = "postproduction"

    @property
    def label(self) -> str:
        """The token written into message text (``post-production`` is hyphenated)."""
        return "post-production" if self is ReferenceType.POST_PRODUCTION else self.value

    @classmethod
    def from_label(cls, label: str) -> "ReferenceType":
        return cls(label.replace("-", ""))


@dataclass(frozen=True)
class Mention:
    user_id: str
    user_name: str

    def to_dict(self) -> dict[str, str]:
        return {"userId": self.user_id, "userName": self.user_name}


@dataclass(frozen=True)
class Reference:
    type: ReferenceType
    id: str
    name: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type.value, "id": self.id, "name": self.name}


@dataclass(frozen=True)
class ChatUser:
    """A studio member offered in the mention picker."""

    id: str
    name: str
    email: str = ""


@dataclass(frozen=True)
class CatalogItem:
    """A referencable entity offered in the reference picker."""

    id: str
    name: str


@dataclass
class ChatMessage:
    """A single team chat message. Immutable once sent."""

    id: str
    content: str
    sender_id: str
    sender_name: str
    created_at: datetime
    mentions: list[Mention] = field(default_factory=list)
    references: list[Reference] = field(default_factory=list)

    @classmethod
    def from_document(cls, doc: Document) -> "ChatMessage":
        return cls(
            id=doc.id,
            content=doc.get("content") or "",
            sender_id=str(doc.get("senderId", "")),
            sender_name=doc.get("senderName") or "",
            created_at=to_datetime(doc.get("createdAt")) or datetime.now(timezone.utc),
            mentions=[_mention_from(m) for m in doc.get("mentions") or []],
            references=[r for r in (_reference_from(r) for r in doc.get("references") or []) if r],
        )


@dataclass(frozen=True)
class MessageSegment:
    """One styled piece of a rendered message body."""

    type: str  # "text" | "mention" | "reference"
    content: str
    reference: Reference | None = None

    @property
    def clickable(self) -> bool:
        return self.reference is not None


def _mention_from(raw: dict[str, Any]) -> Mention:
    return Mention(user_id=str(raw.get("userId", "")), user_name=raw.get("userName") or "")


def _reference_from(raw: dict[str, Any]) -> Reference | None:
    try:
        ref_type = ReferenceType.from_label(str(raw.get("type", "")))
    except ValueError:
        return None
    return Reference(type=ref_type, id=str(raw.get("id", "")), name=raw.get("name") or "")
