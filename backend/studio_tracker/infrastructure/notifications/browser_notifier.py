"""Browser notifier — native notifications relayed to the browser over SSE.

The backend cannot open OS popups itself. It asks the connected browser to
request permission, remembers the answer the browser reports back, and
forwards popups as ``native_notification`` events once permission is
granted.
"""

import logging

from studio_tracker.application.interfaces import (
    PERMISSION_DEFAULT,
    PERMISSION_DENIED,
    PERMISSION_GRANTED,
    EventPublisher,
    NativeNotifier,
)

logger = logging.getLogger(__name__)

_VALID_PERMISSIONS = {PERMISSION_DEFAULT, PERMISSION_GRANTED, PERMISSION_DENIED}


class BrowserNotifier(NativeNotifier):
    """Infrastructure adapter for browser Notification API popups."""

    def __init__(self, publisher: EventPublisher, permission: str = PERMISSION_DEFAULT):
        self._publisher = publisher
        self._permission = permission if permission in _VALID_PERMISSIONS else PERMISSION_DEFAULT

    @property
    def permission(self) -> str:
        return self._permission

    def set_permission(self, permission: str) -> str:
        """Record the permission the browser reported."""
        if permission not in _VALID_PERMISSIONS:
            raise ValueError(f"Unknown notification permission '{permission}'")
        if permission != self._permission:
            logger.info("Browser notification permission: %s → %s", self._permission, permission)
        self._permission = permission
        return self._permission

    async def request_permission(self) -> str:
        if self._permission == PERMISSION_DEFAULT:
            self._publisher.publish("notification_permission_request", {})
        return self._permission

    def show(self, title: str, body: str, *, icon: str | None = None) -> bool:
        if self._permission != PERMISSION_GRANTED:
            return False
        self._publisher.publish(
            "native_notification",
            {"title": title, "body": body, "icon": icon},
        )
        return True
