"""Abstract document store interface (port) — the remote source of truth.

The store is document-oriented: named collections of documents with a
free-form field mapping. Besides one-shot reads and writes it supports live
subscriptions that push the *full* matching result set on every change, and
atomic multi-document batches.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from studio_tracker.domain.entities import Document

SnapshotCallback = Callable[[list[Document]], None]
ErrorCallback = Callable[[Exception], None]
Unsubscribe = Callable[[], None]


def order_key(value: Any) -> tuple[int, Any]:
    """Sort key that ranks values by type before comparing them.

    Booleans < numbers < timestamps < strings < anything else, so a
    collection holding mixed values in its ordering field still sorts.
    Naive datetimes are read as UTC.
    """
    if isinstance(value, bool):
        return (0, value)
    if isinstance(value, (int, float)):
        return (1, value)
    if isinstance(value, datetime):
        return (2, value if value.tzinfo else value.replace(tzinfo=timezone.utc))
    if isinstance(value, str):
        return (3, value)
    return (4, repr(value))


@dataclass(frozen=True)
class CollectionQuery:
    """A filtered, ordered and limited view over one collection.

    ``where`` holds equality filters. Documents missing the ``order_by``
    field sort after every document that has it.
    """

    collection: str
    where: dict[str, Any] = field(default_factory=dict)
    order_by: str | None = None
    descending: bool = True
    limit: int | None = None

    def matches(self, data: dict[str, Any]) -> bool:
        return all(data.get(key) == value for key, value in self.where.items())

    def apply(self, documents: list[Document]) -> list[Document]:
        """Filter, order and limit ``documents`` in memory."""
        selected = [doc for doc in documents if self.matches(doc.data)]
        if self.order_by:
            present = [d for d in selected if d.get(self.order_by) is not None]
            missing = [d for d in selected if d.get(self.order_by) is None]
            present.sort(key=lambda d: order_key(d.get(self.order_by)), reverse=self.descending)
            selected = present + missing
        if self.limit is not None:
            selected = selected[: self.limit]
        return selected


class WriteBatch(ABC):
    """Accumulates writes that are applied all together or not at all."""

    @abstractmethod
    def update(self, collection: str, doc_id: str, patch: dict[str, Any]) -> None:
        """Queue a partial update of one document."""
        ...

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        """Queue the removal of one document."""
        ...

    @abstractmethod
    async def commit(self) -> None:
        """Apply every queued write atomically.

        Raises:
            BatchCommitError: If the batch could not be applied. In that
                case none of the queued writes are visible.
        """
        ...

    @property
    @abstractmethod
    def size(self) -> int:
        """Number of queued writes."""
        ...


class DocumentStore(ABC):
    """Port — what the application layer needs from the document database.

    Every method raises ``DocumentStoreError`` when the underlying store
    fails.
    """

    @abstractmethod
    async def get_all(self, query: CollectionQuery) -> list[Document]:
        """One-shot read of every document matching ``query``."""
        ...

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Document | None:
        """One-shot read of a single document, or None if it does not exist."""
        ...

    @abstractmethod
    def subscribe(
        self,
        query: CollectionQuery,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe:
        """Start a live subscription.

        ``on_snapshot`` receives the full result set once initially and again
        after every change that may affect it. The returned callable detaches
        the listener synchronously; calling it twice is a no-op.
        """
        ...

    @abstractmethod
    async def create(self, collection: str, data: dict[str, Any]) -> str:
        """Insert a document and return its generated id."""
        ...

    @abstractmethod
    async def update(self, collection: str, doc_id: str, patch: dict[str, Any]) -> None:
        """Merge ``patch`` into an existing document.

        Raises:
            EntityNotFoundError: If the document does not exist.
        """
        ...

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Remove a document. Deleting a missing document is not an error."""
        ...

    @abstractmethod
    def batch(self) -> WriteBatch:
        """Start a new atomic write batch."""
        ...
