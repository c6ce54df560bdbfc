from .chat import (
    CatalogItemSchema,
    ChatLookupsResponse,
    ChatMessageResponse,
    ChatStateResponse,
    ChatUserSchema,
    ComposeRequest,
    ComposeResponse,
    ComposeSelectRequest,
    ComposeSelectResponse,
    MentionSchema,
    MessageSegmentSchema,
    NavigateResponse,
    ReferenceSchema,
    RenderRequest,
    SendMessageRequest,
    SendMessageResponse,
)
from .media import TransformedUrlResponse, UploadResponse
from .notification import (
    NotificationActionResponse,
    NotificationFeedResponse,
    NotificationOpenResponse,
    NotificationPermissionRequest,
    NotificationPermissionResponse,
    NotificationResponse,
)
from .production import (
    BulkDeleteRequest,
    BulkResultResponse,
    BulkUpdateRequest,
    CacheStateResponse,
    EntityPatch,
    EntityResponse,
    PostProductionCreate,
    ProjectCreate,
    ScriptCreate,
    StoreFields,
    VideoCreate,
)
from .session import LoginRequest, SessionResponse, UserUpdateRequest

__all__ = [
    "CatalogItemSchema",
    "ChatLookupsResponse",
    "ChatMessageResponse",
    "ChatStateResponse",
    "ChatUserSchema",
    "ComposeRequest",
    "ComposeResponse",
    "ComposeSelectRequest",
    "ComposeSelectResponse",
    "MentionSchema",
    "MessageSegmentSchema",
    "NavigateResponse",
    "ReferenceSchema",
    "RenderRequest",
    "SendMessageRequest",
    "SendMessageResponse",
    "TransformedUrlResponse",
    "UploadResponse",
    "NotificationActionResponse",
    "NotificationFeedResponse",
    "NotificationOpenResponse",
    "NotificationPermissionRequest",
    "NotificationPermissionResponse",
    "NotificationResponse",
    "BulkDeleteRequest",
    "BulkResultResponse",
    "BulkUpdateRequest",
    "CacheStateResponse",
    "EntityPatch",
    "EntityResponse",
    "PostProductionCreate",
    "ProjectCreate",
    "ScriptCreate",
    "StoreFields",
    "VideoCreate",
    "LoginRequest",
    "SessionResponse",
    "UserUpdateRequest",
]
