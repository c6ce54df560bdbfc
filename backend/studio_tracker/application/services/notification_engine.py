"""Notification subscription engine — live per-user notification feed.

The store keeps no unread counter, so every pushed snapshot is treated as
the complete, authoritative list and everything else is derived from it:
the unread count by filtering, new arrivals by comparing snapshot sizes.
Mutations write straight to the store and never patch local state; the next
snapshot reflects them.
"""

import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass
from enum import Enum

from studio_tracker.application.interfaces import (
    PERMISSION_DEFAULT,
    PERMISSION_GRANTED,
    CollectionQuery,
    DocumentStore,
    EventPublisher,
    NativeNotifier,
    Unsubscribe,
)
from studio_tracker.domain.entities import Document, NotificationRecord, ToastEvent
from studio_tracker.infrastructure.logging.colored_logger import SyncLogger, SyncStage

logger = logging.getLogger(__name__)
slog = SyncLogger("studio_tracker.sync.notifications")

NOTIFICATIONS_COLLECTION = "notifications"

ToastListener = Callable[[ToastEvent], None]


class SubscriptionStatus(str, Enum):
    """Lifecycle of a per-user live feed."""

    UNSUBSCRIBED = "unsubscribed"
    SUBSCRIBING = "subscribing"
    LIVE = "live"


@dataclass(frozen=True)
class NotificationFeed:
    """Engine state between two snapshots."""

    notifications: tuple[NotificationRecord, ...] = ()
    previous_count: int = 0

    @property
    def unread_count(self) -> int:
        return count_unread(self.notifications)


def count_unread(notifications: tuple[NotificationRecord, ...] | list[NotificationRecord]) -> int:
    return sum(1 for n in notifications if not n.read)


def reduce_notification_snapshot(
    feed: NotificationFeed, snapshot: list[NotificationRecord]
) -> tuple[NotificationFeed, NotificationRecord | None]:
    """Fold one pushed snapshot into the feed.

    Returns the new feed and the newest record when the snapshot grew since
    a non-empty previous one. The first snapshot (previous count 0) never
    reports an arrival.
    """
    new_count = len(snapshot)
    arrived: NotificationRecord | None = None
    if new_count > feed.previous_count and feed.previous_count > 0:
        arrived = max(snapshot, key=lambda n: n.created_at)
    return NotificationFeed(notifications=tuple(snapshot), previous_count=new_count), arrived


class NotificationEngine:
    """Keeps the signed-in user's notifications live and raises toasts for new ones."""

    def __init__(
        self,
        store: DocumentStore,
        publisher: EventPublisher,
        native_notifier: NativeNotifier | None = None,
        *,
        limit: int = 50,
        toast_duration_seconds: int = 5,
        icon: str | None = None,
    ):
        self._store = store
        self._publisher = publisher
        self._native = native_notifier
        self._limit = limit
        self._toast_duration = toast_duration_seconds
        self._icon = icon

        self._status = SubscriptionStatus.UNSUBSCRIBED
        self._user_id: str | None = None
        self._feed = NotificationFeed()
        self._unsubscribe: Unsubscribe | None = None
        self._token: object | None = None
        self._toast_listeners: list[ToastListener] = []
        self._permission_requested = False

    # ── State ───────────────────────────────────────────────────────

    @property
    def status(self) -> SubscriptionStatus:
        return self._status

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def notifications(self) -> list[NotificationRecord]:
        return list(self._feed.notifications)

    @property
    def unread_count(self) -> int:
        return self._feed.unread_count

    def add_toast_listener(self, listener: ToastListener) -> Callable[[], None]:
        """Register a toast callback; returns a function that removes it."""
        self._toast_listeners.append(listener)

        def remove() -> None:
            if listener in self._toast_listeners:
                self._toast_listeners.remove(listener)

        return remove

    # ── Lifecycle ───────────────────────────────────────────────────

    async def start(self, user_id: str) -> None:
        """Subscribe to ``user_id``'s notifications, replacing any other user's feed."""
        if self._user_id == user_id and self._unsubscribe is not None:
            return
        self.stop()

        token = object()
        self._token = token
        self._user_id = user_id
        self._status = SubscriptionStatus.SUBSCRIBING

        query = CollectionQuery(
            collection=NOTIFICATIONS_COLLECTION,
            where={"userId": user_id},
            order_by="createdAt",
            descending=True,
            limit=self._limit,
        )
        slog.step_start(SyncStage.SUBSCRIBE, "Listening to notifications", user_id=user_id)
        try:
            self._unsubscribe = self._store.subscribe(
                query,
                lambda docs: self._on_snapshot(token, docs),
                lambda exc: self._on_error(token, exc),
            )
        except Exception as exc:
            slog.step_error(SyncStage.SUBSCRIBE, "Could not subscribe to notifications", error=exc)
            self.stop()
            return

        await self._ensure_native_permission()

    def stop(self) -> None:
        """Detach the listener and forget all notification state."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            logger.debug("Notification listener detached for user %s", self._user_id)
        self._unsubscribe = None
        self._token = None
        self._user_id = None
        self._feed = NotificationFeed()
        self._status = SubscriptionStatus.UNSUBSCRIBED

    # ── Push handling ───────────────────────────────────────────────

    def _on_snapshot(self, token: object, documents: list[Document]) -> None:
        if token is not self._token:
            logger.debug("Ignoring notification snapshot for a detached listener")
            return

        snapshot = [NotificationRecord.from_document(doc) for doc in documents]
        previous_unread = self._feed.unread_count
        first_snapshot = self._status is not SubscriptionStatus.LIVE

        self._feed, arrived = reduce_notification_snapshot(self._feed, snapshot)
        self._status = SubscriptionStatus.LIVE
        slog.detail("Notification snapshot", size=len(snapshot), unread=self._feed.unread_count)

        if first_snapshot or self._feed.unread_count != previous_unread:
            self._publisher.publish(
                "notification_unread",
                {"user_id": self._user_id, "unread_count": self._feed.unread_count},
            )
        if arrived is not None:
            self._emit_toast(arrived)

    def _on_error(self, token: object, error: Exception) -> None:
        if token is not self._token:
            return
        # The store adapter keeps the listener attached and retries on its own.
        logger.error("Error listening to notifications: %s", error)

    def _emit_toast(self, record: NotificationRecord) -> None:
        toast = ToastEvent(
            notification_id=record.id,
            title=record.title,
            body=record.body,
            type=record.type,
            link=record.link,
            dismiss_after_seconds=self._toast_duration,
        )
        slog.step_complete(SyncStage.TOAST, record.title, notification_id=record.id)

        for listener in list(self._toast_listeners):
            try:
                listener(toast)
            except Exception:
                logger.exception("Toast listener failed")
        self._publisher.publish("toast", asdict(toast))

        if self._native is not None and self._native.permission == PERMISSION_GRANTED:
            try:
                self._native.show(record.title, record.body, icon=self._icon)
            except Exception as exc:
                logger.warning("Native notification failed: %s", exc)

    async def _ensure_native_permission(self) -> None:
        if self._native is None or self._permission_requested:
            return
        if self._native.permission != PERMISSION_DEFAULT:
            return
        self._permission_requested = True
        try:
            await self._native.request_permission()
        except Exception as exc:
            logger.warning("Native notification permission request failed: %s", exc)

    # ── Mutations ───────────────────────────────────────────────────

    async def mark_read(self, notification_id: str) -> bool:
        try:
            await self._store.update(NOTIFICATIONS_COLLECTION, notification_id, {"read": True})
        except Exception as exc:
            logger.error("Error marking notification %s as read: %s", notification_id, exc)
            return False
        return True

    async def mark_all_read(self) -> bool:
        unread = [n for n in self._feed.notifications if not n.read]
        if not unread:
            return True
        batch = self._store.batch()
        for notification in unread:
            batch.update(NOTIFICATIONS_COLLECTION, notification.id, {"read": True})
        try:
            await batch.commit()
        except Exception as exc:
            logger.error("Error marking all notifications as read: %s", exc)
            return False
        return True

    async def delete(self, notification_id: str) -> bool:
        try:
            await self._store.delete(NOTIFICATIONS_COLLECTION, notification_id)
        except Exception as exc:
            logger.error("Error deleting notification %s: %s", notification_id, exc)
            return False
        return True

    async def delete_all(self) -> bool:
        if not self._feed.notifications:
            return True
        batch = self._store.batch()
        for notification in self._feed.notifications:
            batch.delete(NOTIFICATIONS_COLLECTION, notification.id)
        try:
            await batch.commit()
        except Exception as exc:
            logger.error("Error clearing notifications: %s", exc)
            return False
        return True

    async def open(self, notification_id: str) -> str | None:
        """Handle a click on a notification: mark it read and return its link."""
        record = next((n for n in self._feed.notifications if n.id == notification_id), None)
        await self.mark_read(notification_id)
        return record.link if record else None
