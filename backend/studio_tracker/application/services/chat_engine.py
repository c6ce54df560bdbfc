"""Chat engine — live team chat window, lookups and unread tracking.

The unread count is derived, never stored: messages from other people newer
than the locally persisted read watermark (or from the last day when no
watermark has been written yet).
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from enum import Enum

from studio_tracker.application.interfaces import (
    CollectionQuery,
    DocumentStore,
    EventPublisher,
    LocalStorage,
    Unsubscribe,
)
from studio_tracker.application.services.notification_sender import NotificationSender
from studio_tracker.application.services.reference_parser import reference_route
from studio_tracker.domain.entities import (
    SERVER_TIMESTAMP,
    CatalogItem,
    ChatMessage,
    ChatUser,
    Document,
    Mention,
    Reference,
    ReferenceType,
    Session,
    first_text,
    to_datetime,
)
from studio_tracker.infrastructure.logging.colored_logger import SyncLogger, SyncStage

logger = logging.getLogger(__name__)
slog = SyncLogger("studio_tracker.sync.chat")

CHAT_COLLECTION = "chatMessages"
USERS_COLLECTION = "users"
WATERMARK_KEY = "chat_lastRead_{user_id}"
MENTION_TITLE = "💬 You were mentioned in chat"
MENTION_PREVIEW_CHARS = 50

Clock = Callable[[], datetime]

# Collection and display-name fallbacks for each referencable entity kind.
CATALOG_SOURCES: dict[ReferenceType, tuple[str, Callable[[Document], str]]] = {
    ReferenceType.PROJECT: (
        "projects",
        lambda doc: first_text(doc.get("name"), doc.get("projectName")) or "",
    ),
    ReferenceType.VIDEO: (
        "videos",
        lambda doc: first_text(doc.get("videoName"), doc.get("product"), "Untitled Video"),
    ),
    ReferenceType.SCRIPT: (
        "scripts",
        lambda doc: first_text(doc.get("clientName"), "Untitled Script"),
    ),
    ReferenceType.POST_PRODUCTION: (
        "postproductions",
        lambda doc: first_text(doc.get("videoName"), "Untitled"),
    ),
}


class ChatStatus(str, Enum):
    STOPPED = "stopped"
    LOADING = "loading"
    LIVE = "live"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def count_unread_messages(
    messages: list[ChatMessage],
    user_id: str | None,
    last_read: datetime | None,
    now: datetime,
    fallback_hours: int = 24,
) -> int:
    """Messages from other senders newer than ``last_read`` (or the fallback window)."""
    cutoff = last_read if last_read is not None else now - timedelta(hours=fallback_hours)
    return sum(1 for m in messages if m.sender_id != user_id and m.created_at > cutoff)


def mention_body(sender_name: str, content: str) -> str:
    preview = content[:MENTION_PREVIEW_CHARS]
    ellipsis = "..." if len(content) > MENTION_PREVIEW_CHARS else ""
    return f'{sender_name} mentioned you: "{preview}{ellipsis}"'


class ChatEngine:
    """The signed-in user's view of the team chat."""

    def __init__(
        self,
        store: DocumentStore,
        local_storage: LocalStorage,
        sender: NotificationSender,
        publisher: EventPublisher,
        *,
        message_limit: int = 100,
        lookup_limit: int = 100,
        unread_fallback_hours: int = 24,
        clock: Clock = _utcnow,
    ):
        self._store = store
        self._local_storage = local_storage
        self._sender = sender
        self._publisher = publisher
        self._message_limit = message_limit
        self._lookup_limit = lookup_limit
        self._fallback_hours = unread_fallback_hours
        self._clock = clock

        self._session: Session | None = None
        self._status = ChatStatus.STOPPED
        self._messages: list[ChatMessage] = []
        self._users: list[ChatUser] = []
        self._catalogs: dict[ReferenceType, list[CatalogItem]] = {t: [] for t in ReferenceType}
        self._last_read: datetime | None = None
        self._is_open = False
        self._unsubscribe: Unsubscribe | None = None
        self._token: object | None = None

    # ── State ───────────────────────────────────────────────────────

    @property
    def status(self) -> ChatStatus:
        return self._status

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    @property
    def users(self) -> list[ChatUser]:
        return list(self._users)

    @property
    def catalogs(self) -> dict[ReferenceType, list[CatalogItem]]:
        return {t: list(items) for t, items in self._catalogs.items()}

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def last_read(self) -> datetime | None:
        return self._last_read

    @property
    def unread_count(self) -> int:
        if self._session is None:
            return 0
        return count_unread_messages(
            self._messages,
            self._session.id,
            self._last_read,
            self._clock(),
            self._fallback_hours,
        )

    # ── Lifecycle ───────────────────────────────────────────────────

    async def start(self, session: Session) -> None:
        """Attach the live message window and load the picker lookups for ``session``."""
        if self._session is not None and self._session.id == session.id and self._unsubscribe:
            self._session = session
            return
        self.stop()

        token = object()
        self._token = token
        self._session = session
        self._status = ChatStatus.LOADING
        self._last_read = self._load_watermark(session.id)

        query = CollectionQuery(
            collection=CHAT_COLLECTION,
            order_by="createdAt",
            descending=True,
            limit=self._message_limit,
        )
        slog.step_start(SyncStage.SUBSCRIBE, "Listening to chat", user_id=session.id)
        try:
            self._unsubscribe = self._store.subscribe(
                query,
                lambda docs: self._on_snapshot(token, docs),
                lambda exc: self._on_error(token, exc),
            )
        except Exception as exc:
            slog.step_error(SyncStage.SUBSCRIBE, "Could not subscribe to chat", error=exc)
            self._status = ChatStatus.LIVE

        await self.refresh_lookups()

    def stop(self) -> None:
        """Detach the live window and forget per-user state."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            logger.debug("Chat listener detached")
        self._unsubscribe = None
        self._token = None
        self._session = None
        self._messages = []
        self._last_read = None
        self._is_open = False
        self._status = ChatStatus.STOPPED

    async def refresh_lookups(self) -> None:
        """One-shot reads of users and referencable entities. Each failure is logged on its own."""
        results = await asyncio.gather(
            self._load_users(),
            *(self._load_catalog(ref_type) for ref_type in ReferenceType),
            return_exceptions=True,
        )
        users_result, *catalog_results = results
        if isinstance(users_result, BaseException):
            logger.error("Error fetching users: %s", users_result)
        else:
            self._users = users_result
        for ref_type, result in zip(ReferenceType, catalog_results):
            if isinstance(result, BaseException):
                logger.error("Error fetching %s for references: %s", ref_type.value, result)
            else:
                self._catalogs[ref_type] = result
        slog.step_complete(
            SyncStage.FETCH,
            "Chat lookups loaded",
            users=len(self._users),
            **{t.value: len(items) for t, items in self._catalogs.items()},
        )

    async def _load_users(self) -> list[ChatUser]:
        docs = await self._store.get_all(CollectionQuery(collection=USERS_COLLECTION))
        return [
            ChatUser(id=doc.id, name=doc.get("name") or "", email=doc.get("email") or "")
            for doc in docs
        ]

    async def _load_catalog(self, ref_type: ReferenceType) -> list[CatalogItem]:
        collection, display_name = CATALOG_SOURCES[ref_type]
        docs = await self._store.get_all(
            CollectionQuery(collection=collection, limit=self._lookup_limit)
        )
        return [CatalogItem(id=doc.id, name=display_name(doc)) for doc in docs]

    # ── Push handling ───────────────────────────────────────────────

    def _on_snapshot(self, token: object, documents: list[Document]) -> None:
        if token is not self._token:
            return
        messages = [ChatMessage.from_document(doc) for doc in documents]
        messages.reverse()
        self._messages = messages
        self._status = ChatStatus.LIVE
        if self._is_open:
            self._mark_read()
        slog.detail("Chat snapshot", size=len(messages), unread=self.unread_count)
        self._publisher.publish(
            "chat_update",
            {"message_count": len(messages), "unread_count": self.unread_count},
        )

    def _on_error(self, token: object, error: Exception) -> None:
        if token is not self._token:
            return
        logger.error("Error listening to chat messages: %s", error)
        self._status = ChatStatus.LIVE

    # ── Watermark ───────────────────────────────────────────────────

    def _load_watermark(self, user_id: str) -> datetime | None:
        saved = self._local_storage.get_item(WATERMARK_KEY.format(user_id=user_id))
        if not saved:
            return None
        parsed = to_datetime(saved)
        if parsed is None:
            logger.warning("Ignoring unreadable chat watermark for user %s", user_id)
        return parsed

    def _mark_read(self) -> None:
        if self._session is None:
            return
        now = self._clock()
        self._last_read = now
        self._local_storage.set_item(
            WATERMARK_KEY.format(user_id=self._session.id), now.isoformat()
        )

    # ── Panel ───────────────────────────────────────────────────────

    def open(self) -> None:
        """Show the panel; everything currently in the window counts as read."""
        self._is_open = True
        self._mark_read()
        self._publisher.publish("chat_update", {"message_count": len(self._messages), "unread_count": 0})

    def close(self) -> None:
        self._is_open = False

    def toggle(self) -> bool:
        if self._is_open:
            self.close()
        else:
            self.open()
        return self._is_open

    def navigate_to_reference(self, reference: Reference) -> str:
        """Route for a clicked reference. Following it hides the chat panel."""
        self.close()
        return reference_route(reference)

    # ── Send ────────────────────────────────────────────────────────

    async def send(
        self,
        content: str,
        mentions: list[Mention] | None = None,
        references: list[Reference] | None = None,
    ) -> bool:
        """Post a message, then notify each mentioned user other than the sender.

        Returns False without writing when there is no session or the text is
        blank. A failed notification never undoes the message.
        """
        session = self._session
        text = content.strip()
        if session is None or not text:
            return False

        mentions = mentions or []
        references = references or []
        try:
            await self._store.create(
                CHAT_COLLECTION,
                {
                    "content": text,
                    "senderId": session.id,
                    "senderName": session.name,
                    "mentions": [m.to_dict() for m in mentions],
                    "references": [r.to_dict() for r in references],
                    "createdAt": SERVER_TIMESTAMP,
                },
            )
        except Exception as exc:
            logger.error("Error sending message: %s", exc)
            return False
        slog.step_complete(SyncStage.WRITE, "Chat message sent", mentions=len(mentions))

        for mention in mentions:
            if mention.user_id == session.id:
                continue
            delivered = await self._sender.send_to_user(
                mention.user_id,
                title=MENTION_TITLE,
                body=mention_body(session.name, content),
                type="chat",
                link=None,
            )
            if not delivered:
                logger.warning("Mention notification to %s was not delivered", mention.user_id)
        return True
