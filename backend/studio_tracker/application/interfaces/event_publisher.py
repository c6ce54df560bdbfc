"""Abstract event publisher interface (port) for pushing live events to clients."""

from abc import ABC, abstractmethod
from typing import Any


class EventPublisher(ABC):
    """Port — fire-and-forget delivery of named events to connected clients."""

    @abstractmethod
    def publish(self, event_type: str, data: dict[str, Any]) -> None:
        """Queue ``data`` for every connected client. Must not block or raise."""
        ...
