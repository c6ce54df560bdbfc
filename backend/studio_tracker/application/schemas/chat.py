"""Pydantic DTOs for team chat, including the compose and render helpers."""

from datetime import datetime

from pydantic import BaseModel, Field

from studio_tracker.domain.entities import ReferenceType


class MentionSchema(BaseModel):
    user_id: str
    user_name: str


class ReferenceSchema(BaseModel):
    type: ReferenceType
    id: str
    name: str


class MessageSegmentSchema(BaseModel):
    type: str
    content: str
    reference: ReferenceSchema | None = None
    route: str | None = None


class ChatMessageResponse(BaseModel):
    id: str
    content: str
    sender_id: str
    sender_name: str
    created_at: datetime
    mentions: list[MentionSchema]
    references: list[ReferenceSchema]
    segments: list[MessageSegmentSchema]


class ChatStateResponse(BaseModel):
    status: str
    is_open: bool
    unread_count: int
    message_count: int
    last_read: datetime | None = None


class SendMessageRequest(BaseModel):
    content: str = Field(..., examples=["Cut is ready @Ali see #project:Launch"])
    mentions: list[MentionSchema] = []
    references: list[ReferenceSchema] = []


class SendMessageResponse(BaseModel):
    success: bool


class ChatUserSchema(BaseModel):
    id: str
    name: str
    email: str = ""


class CatalogItemSchema(BaseModel):
    id: str
    name: str


class ChatLookupsResponse(BaseModel):
    users: list[ChatUserSchema]
    projects: list[CatalogItemSchema]
    videos: list[CatalogItemSchema]
    scripts: list[CatalogItemSchema]
    post_productions: list[CatalogItemSchema]


class ComposeRequest(BaseModel):
    """Current input-box state. ``cursor`` defaults to the end of ``text``."""

    text: str
    cursor: int | None = Field(None, ge=0)
    mentions: list[MentionSchema] = []
    references: list[ReferenceSchema] = []
    reference_type: ReferenceType | None = None


class ComposeResponse(BaseModel):
    picker: str | None = None
    query: str = ""
    reference_type: ReferenceType | None = None
    users: list[ChatUserSchema] = []
    items: list[CatalogItemSchema] = []


class ComposeSelectRequest(ComposeRequest):
    """Pick a user (``user_id``) or, with ``reference_type`` set, an entity (``item_id``)."""

    user_id: str | None = None
    item_id: str | None = None


class ComposeSelectResponse(BaseModel):
    text: str
    cursor: int
    mentions: list[MentionSchema]
    references: list[ReferenceSchema]


class RenderRequest(BaseModel):
    content: str
    references: list[ReferenceSchema] = []


class NavigateResponse(BaseModel):
    route: str
