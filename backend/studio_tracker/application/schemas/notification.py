"""Pydantic DTOs for the notification feed."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: str
    title: str
    body: str
    type: str
    link: str | None = None
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationFeedResponse(BaseModel):
    status: str
    unread_count: int
    notifications: list[NotificationResponse]


class NotificationActionResponse(BaseModel):
    success: bool


class NotificationOpenResponse(BaseModel):
    link: str | None = None


class NotificationPermissionRequest(BaseModel):
    permission: Literal["default", "granted", "denied"]


class NotificationPermissionResponse(BaseModel):
    permission: str
