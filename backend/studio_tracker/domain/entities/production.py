"""Domain entities for tracked production work — projects, videos, scripts, post-productions.

Stored documents are loosely typed: most fields may be missing. Each entity
maps the fields it knows about onto explicit optional attributes, keeps the
rest in ``extra`` and exposes a ``display_name`` with the fallback chain the
UI has always used.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, TypeVar

from .document import Document, first_text, to_datetime


class EntityType(str, Enum):
    """Cached entity types, valued by their store collection name."""

    PROJECT = "projects"
    VIDEO = "videos"
    SCRIPT = "scripts"
    CLIENT = "clients"
    POST_PRODUCTION = "postproductions"


E = TypeVar("E", bound="ProductionEntity")


@dataclass
class ProductionEntity:
    """Shared mapping logic between store documents and entity attributes."""

    id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    # attribute name -> document key
    FIELD_MAP: ClassVar[dict[str, str]] = {}
    _TIMESTAMP_KEYS: ClassVar[tuple[str, ...]] = ("createdAt", "updatedAt")

    @classmethod
    def from_document(cls: type[E], doc: Document) -> E:
        known = set(cls.FIELD_MAP.values()) | set(cls._TIMESTAMP_KEYS) | {"id"}
        mapped = {attr: doc.get(key) for attr, key in cls.FIELD_MAP.items()}
        return cls(
            id=doc.id,
            created_at=to_datetime(doc.get("createdAt")),
            updated_at=to_datetime(doc.get("updatedAt")),
            extra={k: v for k, v in doc.data.items() if k not in known},
            **mapped,
        )

    def to_document(self) -> dict[str, Any]:
        """Serialize back to store fields, skipping unset attributes."""
        data: dict[str, Any] = dict(self.extra)
        for attr, key in self.FIELD_MAP.items():
            value = getattr(self, attr)
            if value is not None:
                data[key] = value
        if self.created_at is not None:
            data["createdAt"] = self.created_at
        if self.updated_at is not None:
            data["updatedAt"] = self.updated_at
        return data

    def with_changes(self: E, patch: dict[str, Any]) -> E:
        """Return a copy with a store-keyed ``patch`` applied."""
        data = self.to_document()
        data.update(patch)
        return type(self).from_document(Document(id=self.id, data=data))

    @property
    def display_name(self) -> str:
        raise NotImplementedError


@dataclass
class Project(ProductionEntity):
    name: str | None = None
    project_name: str | None = None
    client_name: str | None = None
    status: str | None = None
    description: str | None = None

    FIELD_MAP: ClassVar[dict[str, str]] = {
        "name": "name",
        "project_name": "projectName",
        "client_name": "clientName",
        "status": "status",
        "description": "description",
    }

    @property
    def display_name(self) -> str:
        return first_text(self.name, self.project_name) or "Untitled Project"


@dataclass
class Video(ProductionEntity):
    video_name: str | None = None
    product: str | None = None
    project_id: str | None = None
    project_name: str | None = None
    client_name: str | None = None
    video_type: str | None = None
    shoot_day: str | None = None
    shoot_status: str | None = None

    FIELD_MAP: ClassVar[dict[str, str]] = {
        "video_name": "videoName",
        "product": "product",
        "project_id": "projectId",
        "project_name": "projectName",
        "client_name": "clientName",
        "video_type": "videoType",
        "shoot_day": "shootDay",
        "shoot_status": "shootStatus",
    }

    @property
    def display_name(self) -> str:
        return first_text(self.video_name, self.product) or "Untitled Video"


@dataclass
class Script(ProductionEntity):
    client_name: str | None = None
    content_type: str | None = None
    related_video_id: str | None = None
    writer: str | None = None
    status: str | None = None

    FIELD_MAP: ClassVar[dict[str, str]] = {
        "client_name": "clientName",
        "content_type": "contentType",
        "related_video_id": "relatedVideoId",
        "writer": "writer",
        "status": "status",
    }

    @property
    def display_name(self) -> str:
        return first_text(self.client_name) or "Untitled Script"


@dataclass
class PostProduction(ProductionEntity):
    video_id: str | None = None
    video_name: str | None = None
    video_product: str | None = None
    client_name: str | None = None
    editor: str | None = None
    status: str | None = None

    FIELD_MAP: ClassVar[dict[str, str]] = {
        "video_id": "videoId",
        "video_name": "videoName",
        "video_product": "videoProduct",
        "client_name": "clientName",
        "editor": "editor",
        "status": "status",
    }

    @property
    def display_name(self) -> str:
        return first_text(self.video_name, self.video_product) or "Untitled"


ENTITY_CLASSES: dict[EntityType, type[ProductionEntity]] = {
    EntityType.PROJECT: Project,
    EntityType.VIDEO: Video,
    EntityType.SCRIPT: Script,
    EntityType.POST_PRODUCTION: PostProduction,
}
