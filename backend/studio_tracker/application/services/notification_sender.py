"""Notification fan-out — creates notification records for studio events."""

import asyncio
import logging

from studio_tracker.application.interfaces import CollectionQuery, DocumentStore
from studio_tracker.domain.entities import SERVER_TIMESTAMP

logger = logging.getLogger(__name__)

NOTIFICATIONS_COLLECTION = "notifications"
USERS_COLLECTION = "users"


class NotificationSender:
    """Writes one notification record per recipient. Failures are logged, never raised."""

    def __init__(self, store: DocumentStore):
        self._store = store

    async def send_to_user(
        self,
        user_id: str,
        title: str,
        body: str,
        type: str,
        link: str | None = None,
    ) -> bool:
        try:
            await self._store.create(
                NOTIFICATIONS_COLLECTION,
                _record(user_id, title, body, type, link),
            )
        except Exception as exc:
            logger.error("Error sending notification to user %s: %s", user_id, exc)
            return False
        return True

    async def send_to_all(
        self,
        title: str,
        body: str,
        type: str,
        link: str | None = None,
    ) -> bool:
        """Notify every active user, the author of the change included."""
        try:
            users = await self._store.get_all(CollectionQuery(collection=USERS_COLLECTION))
            recipients = [doc.id for doc in users if doc.get("isActive") is not False]
            await asyncio.gather(*(
                self._store.create(
                    NOTIFICATIONS_COLLECTION,
                    _record(user_id, title, body, type, link),
                )
                for user_id in recipients
            ))
        except Exception as exc:
            logger.error("Error sending notifications: %s", exc)
            return False
        logger.info("Sent '%s' notification to %d user(s)", type, len(recipients))
        return True

    # ── Pre-built senders for common events ──────────────────────────

    async def notify_new_project(self, project_name: str) -> bool:
        return await self.send_to_all(
            title="📁 New Project Created",
            body=f'Project "{project_name}" has been created.',
            type="project",
            link="/projects",
        )

    async def notify_video_assigned(self, video_name: str, project_name: str) -> bool:
        return await self.send_to_all(
            title="🎬 New Video Assigned",
            body=f'Video "{video_name}" added to project "{project_name}".',
            type="video",
            link="/videos",
        )

    async def notify_script_assigned(self, client_name: str, content_type: str | None = None) -> bool:
        return await self.send_to_all(
            title="📝 New Script Assigned",
            body=f"New {content_type or 'script'} for {client_name} has been created.",
            type="script",
            link="/scripts",
        )

    async def notify_post_production_assigned(self, video_name: str, editor: str) -> bool:
        return await self.send_to_all(
            title="🎞️ Post-Production Assigned",
            body=f'"{video_name}" assigned to {editor} for editing.',
            type="postproduction",
            link="/post-productions",
        )


def _record(user_id: str, title: str, body: str, type: str, link: str | None) -> dict:
    return {
        "userId": user_id,
        "title": title,
        "body": body,
        "type": type,
        "link": link,
        "read": False,
        "createdAt": SERVER_TIMESTAMP,
    }
