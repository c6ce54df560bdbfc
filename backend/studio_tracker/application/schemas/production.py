"""Pydantic DTOs for projects, videos, scripts and post-productions.

Request fields are snake_case in Python and camelCase on the wire (the store
field names). Fields not declared here are accepted and stored as given.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

STORE_ASSIGNED_FIELDS = ("createdAt", "updatedAt")


def _reject_store_assigned(fields: dict[str, Any]) -> None:
    taken = [name for name in STORE_ASSIGNED_FIELDS if name in fields]
    if taken:
        raise ValueError(f"{', '.join(taken)} cannot be set directly")


class StoreFields(BaseModel):
    """Base for request bodies that map straight onto store documents."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_store(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ProjectCreate(StoreFields):
    name: str = Field(..., min_length=1, examples=["Spring Launch"])
    client_name: str | None = None
    status: str | None = "in-progress"
    description: str | None = None


class VideoCreate(StoreFields):
    project_id: str | None = None
    video_name: str | None = None
    product: str | None = None
    video_type: str | None = None
    client_name: str | None = None
    shoot_day: str | None = None
    shoot_status: str | None = "Pending"


class ScriptCreate(StoreFields):
    client_name: str = Field(..., min_length=1)
    content_type: str | None = None
    related_video_id: str | None = None
    writer: str | None = None
    status: str | None = "Pending"
    final_script_link: str | None = None


class PostProductionCreate(StoreFields):
    video_id: str | None = None
    video_name: str | None = None
    video_product: str | None = None
    client_name: str | None = None
    editor: str | None = None
    status: str | None = "Pending"


class EntityPatch(StoreFields):
    """Partial update — any store fields except the store-assigned timestamps."""

    @model_validator(mode="after")
    def reject_store_assigned_fields(self) -> "EntityPatch":
        _reject_store_assigned(self.model_extra or {})
        return self


class BulkDeleteRequest(BaseModel):
    ids: list[str] = Field(..., min_length=1)


class BulkUpdateRequest(BaseModel):
    ids: list[str] = Field(..., min_length=1)
    changes: dict[str, Any] = Field(..., min_length=1)

    @field_validator("changes")
    @classmethod
    def reject_store_assigned_fields(cls, changes: dict[str, Any]) -> dict[str, Any]:
        _reject_store_assigned(changes)
        return changes


class BulkResultResponse(BaseModel):
    affected: int


class EntityResponse(BaseModel):
    """A cached entity: identity, display name and its raw store fields."""

    id: str
    type: str
    display_name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    data: dict[str, Any]


class CacheStateResponse(BaseModel):
    state: str
    count: int | None = None
