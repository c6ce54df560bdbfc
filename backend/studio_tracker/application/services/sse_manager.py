"""SSE Manager — in-process event broadcaster for toasts and live counters."""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator
from typing import Any

from studio_tracker.application.interfaces import EventPublisher

logger = logging.getLogger(__name__)


class SSEManager(EventPublisher):
    """Manages SSE client connections and broadcasts live-feed events.

    Each connected client gets its own bounded asyncio.Queue. Publishing
    pushes the event to all queues without awaiting, so engine callbacks can
    publish from inside a snapshot handler. Clients consume events via an
    async generator.
    """

    def __init__(self, max_queue_size: int = 256) -> None:
        self._queues: list[asyncio.Queue[str | None]] = []
        self._max_queue_size = max_queue_size

    async def subscribe(self) -> AsyncGenerator[str, None]:
        """Subscribe to SSE events. Yields formatted SSE strings.

        The generator automatically unsubscribes when the client disconnects.
        """
        queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=self._max_queue_size)
        self._queues.append(queue)
        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield event
        finally:
            if queue in self._queues:
                self._queues.remove(queue)

    def publish(self, event_type: str, data: dict[str, Any]) -> None:
        """Broadcast an SSE event to all connected clients."""
        sse_message = f"event: {event_type}\ndata: {json.dumps(data, default=str)}\n\n"
        dead_queues: list[asyncio.Queue[str | None]] = []

        for queue in self._queues:
            try:
                queue.put_nowait(sse_message)
            except asyncio.QueueFull:
                dead_queues.append(queue)
                logger.warning("SSE client queue full — disconnecting")

        for q in dead_queues:
            self._queues.remove(q)
            _drain(q)
            q.put_nowait(None)

    async def shutdown(self) -> None:
        """Disconnect all connected clients."""
        for queue in self._queues:
            _drain(queue)
            queue.put_nowait(None)
        self._queues.clear()

    @property
    def client_count(self) -> int:
        return len(self._queues)


def _drain(queue: asyncio.Queue[str | None]) -> None:
    """Empty a queue so the disconnect marker always fits."""
    while not queue.empty():
        queue.get_nowait()
