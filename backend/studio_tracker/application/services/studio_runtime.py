"""Studio runtime — owns one instance of every sync service and their lifecycle.

Engines follow the session: signing in (or restoring a stored session)
attaches the notification and chat subscriptions for that user, signing out
or switching user detaches them.
"""

import logging

from studio_tracker.application.interfaces import (
    DocumentStore,
    EventPublisher,
    LocalStorage,
    MediaUploader,
    NativeNotifier,
)
from studio_tracker.application.services.cache_store import DataCacheService
from studio_tracker.application.services.chat_engine import ChatEngine
from studio_tracker.application.services.notification_engine import NotificationEngine
from studio_tracker.application.services.notification_sender import NotificationSender
from studio_tracker.application.services.production_service import ProductionService
from studio_tracker.application.services.session_store import SessionStore
from studio_tracker.domain.entities import Session

logger = logging.getLogger(__name__)


class StudioRuntime:
    """Explicitly constructed container for the session, caches and live engines."""

    def __init__(
        self,
        store: DocumentStore,
        local_storage: LocalStorage,
        publisher: EventPublisher,
        *,
        uploader: MediaUploader | None = None,
        native_notifier: NativeNotifier | None = None,
        fetch_timeout: float | None = None,
        chat_message_limit: int = 100,
        chat_lookup_limit: int = 100,
        chat_unread_fallback_hours: int = 24,
        notification_limit: int = 50,
        toast_duration_seconds: int = 5,
        notification_icon: str | None = None,
    ):
        self.store = store
        self.publisher = publisher
        self.uploader = uploader
        self.native_notifier = native_notifier

        self.sender = NotificationSender(store)
        self.cache = DataCacheService(store, timeout=fetch_timeout)
        self.production = ProductionService(store, self.cache, self.sender)
        self.session_store = SessionStore(store, local_storage)
        self.notifications = NotificationEngine(
            store,
            publisher,
            native_notifier,
            limit=notification_limit,
            toast_duration_seconds=toast_duration_seconds,
            icon=notification_icon,
        )
        self.chat = ChatEngine(
            store,
            local_storage,
            self.sender,
            publisher,
            message_limit=chat_message_limit,
            lookup_limit=chat_lookup_limit,
            unread_fallback_hours=chat_unread_fallback_hours,
        )
        self.session_store.add_listener(self._on_session_change)

    @property
    def session(self) -> Session | None:
        return self.session_store.session

    async def start(self) -> None:
        """Restore the stored session; engines attach through the session listener."""
        session = await self.session_store.restore()
        logger.info(
            "Studio runtime started (%s)",
            f"session for {session.id}" if session else "no stored session",
        )

    async def shutdown(self) -> None:
        self.notifications.stop()
        self.chat.stop()
        logger.info("Studio runtime stopped")

    async def _on_session_change(self, session: Session | None) -> None:
        if session is None:
            self.notifications.stop()
            self.chat.stop()
            self.publisher.publish("session", {"authenticated": False})
            return
        await self.notifications.start(session.id)
        await self.chat.start(session)
        self.publisher.publish("session", {"authenticated": True, "user_id": session.id})
