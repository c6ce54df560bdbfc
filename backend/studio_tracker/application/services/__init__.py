from .cache_store import DataCacheService, EntityCache
from .chat_engine import ChatEngine
from .notification_engine import NotificationEngine, SubscriptionStatus
from .notification_sender import NotificationSender
from .production_service import ProductionService
from .reference_parser import MessageComposer
from .session_store import LoginResult, SessionStore
from .sse_manager import SSEManager
from .studio_runtime import StudioRuntime

__all__ = [
    "DataCacheService",
    "EntityCache",
    "ChatEngine",
    "NotificationEngine",
    "SubscriptionStatus",
    "NotificationSender",
    "ProductionService",
    "MessageComposer",
    "LoginResult",
    "SessionStore",
    "SSEManager",
    "StudioRuntime",
]
