"""Abstract local key/value storage interface (port)."""

from abc import ABC, abstractmethod


class LocalStorage(ABC):
    """Port for small values that must survive restarts (session blob, read watermarks).

    Entries never expire; they are only removed explicitly.
    """

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete ``key``. Removing an absent key is a no-op."""
        ...
