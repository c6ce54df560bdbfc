from .cache_entry import CacheEntry, CacheState
from .chat_message import (
    CatalogItem,
    ChatMessage,
    ChatUser,
    Mention,
    MessageSegment,
    Reference,
    ReferenceType,
)
from .document import SERVER_TIMESTAMP, Document, first_text, to_datetime
from .media import UploadResult
from .notification import NotificationRecord, ToastEvent
from .production import (
    ENTITY_CLASSES,
    EntityType,
    PostProduction,
    ProductionEntity,
    Project,
    Script,
    Video,
)
from .session import ROLE_LABELS, ROLE_PERMISSIONS, Session, UserRole

__all__ = [
    "CacheEntry",
    "CacheState",
    "CatalogItem",
    "ChatMessage",
    "ChatUser",
    "Mention",
    "MessageSegment",
    "Reference",
    "ReferenceType",
    "SERVER_TIMESTAMP",
    "Document",
    "first_text",
    "to_datetime",
    "UploadResult",
    "NotificationRecord",
    "ToastEvent",
    "ENTITY_CLASSES",
    "EntityType",
    "PostProduction",
    "ProductionEntity",
    "Project",
    "Script",
    "Video",
    "ROLE_LABELS",
    "ROLE_PERMISSIONS",
    "Session",
    "UserRole",
]
