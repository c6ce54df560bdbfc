"""Abstract native (OS-level) notification interface (port).

Native popups are a secondary channel: in-app toasts are always delivered,
and a missing or denied permission is not an error.
"""

from abc import ABC, abstractmethod

PERMISSION_DEFAULT = "default"
PERMISSION_GRANTED = "granted"
PERMISSION_DENIED = "denied"


class NativeNotifier(ABC):
    """Port for system-level notification popups."""

    @property
    @abstractmethod
    def permission(self) -> str:
        """Current permission: ``default``, ``granted`` or ``denied``."""
        ...

    @abstractmethod
    async def request_permission(self) -> str:
        """Ask for permission (once) and return the resulting state."""
        ...

    @abstractmethod
    def show(self, title: str, body: str, *, icon: str | None = None) -> bool:
        """Display a popup. Returns False when permission is not granted."""
        ...
