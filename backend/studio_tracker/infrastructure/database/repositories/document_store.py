"""Concrete document store backed by SQLAlchemy.

Documents live in a single table keyed by (collection, id) with a JSON
payload. Live subscriptions are served in-process: after every committed
write the subscriptions on the touched collections re-run their query and
receive the full result set.
"""

import asyncio
import itertools
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from studio_tracker.application.interfaces import (
    CollectionQuery,
    DocumentStore,
    ErrorCallback,
    SnapshotCallback,
    Unsubscribe,
    WriteBatch,
)
from studio_tracker.domain.entities import SERVER_TIMESTAMP, Document
from studio_tracker.domain.exceptions import (
    BatchCommitError,
    DocumentStoreError,
    EntityNotFoundError,
)
from studio_tracker.infrastructure.database.models import DocumentModel

logger = logging.getLogger(__name__)

_DATE_MARKER = "$date"


# ── JSON payload encoding ────────────────────────────────────────────


def encode_value(value: Any, now: datetime) -> Any:
    """Prepare a field value for the JSON column."""
    if value is SERVER_TIMESTAMP:
        return {_DATE_MARKER: now.isoformat()}
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return {_DATE_MARKER: value.isoformat()}
    if isinstance(value, dict):
        return {k: encode_value(v, now) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(v, now) for v in value]
    return value


def decode_value(value: Any) -> Any:
    if isinstance(value, dict):
        if set(value) == {_DATE_MARKER}:
            return datetime.fromisoformat(value[_DATE_MARKER])
        return {k: decode_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [decode_value(v) for v in value]
    return value


def _to_document(model: DocumentModel) -> Document:
    return Document(id=model.id, data=decode_value(model.data or {}))


# ── Subscriptions ────────────────────────────────────────────────────


@dataclass
class _Subscription:
    query: CollectionQuery
    on_snapshot: SnapshotCallback
    on_error: ErrorCallback | None
    active: bool = True
    requested: int = 0
    delivered: int = 0
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class SQLAlchemyDocumentStore(DocumentStore):
    """Implements the DocumentStore port using SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._subscriptions: dict[int, _Subscription] = {}
        self._ids = itertools.count(1)
        self._tasks: set[asyncio.Task[None]] = set()

    # ── Reads ───────────────────────────────────────────────────────

    async def get_all(self, query: CollectionQuery) -> list[Document]:
        try:
            async with self._session_factory() as session:
                stmt = select(DocumentModel).where(DocumentModel.collection == query.collection)
                result = await session.execute(stmt)
                documents = [_to_document(row) for row in result.scalars().all()]
        except SQLAlchemyError as exc:
            raise DocumentStoreError("get_all", query.collection, str(exc)) from exc
        return query.apply(documents)

    async def get(self, collection: str, doc_id: str) -> Document | None:
        try:
            async with self._session_factory() as session:
                model = await session.get(DocumentModel, (collection, doc_id))
                return _to_document(model) if model else None
        except SQLAlchemyError as exc:
            raise DocumentStoreError("get", collection, str(exc)) from exc

    # ── Live subscriptions ──────────────────────────────────────────

    def subscribe(
        self,
        query: CollectionQuery,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe:
        key = next(self._ids)
        subscription = _Subscription(query=query, on_snapshot=on_snapshot, on_error=on_error)
        self._subscriptions[key] = subscription

        task = asyncio.get_running_loop().create_task(self._push(subscription))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        def unsubscribe() -> None:
            subscription.active = False
            self._subscriptions.pop(key, None)

        return unsubscribe

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    async def _push(self, subscription: _Subscription) -> None:
        subscription.requested += 1
        sequence = subscription.requested
        async with subscription.lock:
            if not subscription.active or sequence <= subscription.delivered:
                return
            try:
                documents = await self.get_all(subscription.query)
            except DocumentStoreError as exc:
                logger.error("Snapshot query on '%s' failed: %s", subscription.query.collection, exc)
                if subscription.on_error is not None and subscription.active:
                    subscription.on_error(exc)
                return
            if not subscription.active:
                return
            subscription.delivered = sequence
            try:
                subscription.on_snapshot(documents)
            except Exception:
                logger.exception("Snapshot listener on '%s' failed", subscription.query.collection)

    async def _notify(self, collections: set[str]) -> None:
        affected = [
            s for s in list(self._subscriptions.values())
            if s.query.collection in collections
        ]
        for subscription in affected:
            await self._push(subscription)

    async def wait_idle(self) -> None:
        """Wait until every scheduled initial snapshot has been delivered."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # ── Writes ──────────────────────────────────────────────────────

    async def create(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        now = datetime.now(timezone.utc)
        try:
            async with self._session_factory() as session:
                session.add(
                    DocumentModel(
                        collection=collection,
                        id=doc_id,
                        data=encode_value(data, now),
                        created_at=now,
                        updated_at=now,
                    )
                )
                await session.commit()
        except SQLAlchemyError as exc:
            raise DocumentStoreError("create", collection, str(exc)) from exc
        await self._notify({collection})
        return doc_id

    async def update(self, collection: str, doc_id: str, patch: dict[str, Any]) -> None:
        now = datetime.now(timezone.utc)
        try:
            async with self._session_factory() as session:
                model = await session.get(DocumentModel, (collection, doc_id))
                if model is None:
                    raise EntityNotFoundError(collection, doc_id)
                model.data = {**(model.data or {}), **encode_value(patch, now)}
                model.updated_at = now
                await session.commit()
        except SQLAlchemyError as exc:
            raise DocumentStoreError("update", collection, str(exc)) from exc
        await self._notify({collection})

    async def delete(self, collection: str, doc_id: str) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(
                    delete(DocumentModel).where(
                        DocumentModel.collection == collection,
                        DocumentModel.id == doc_id,
                    )
                )
                await session.commit()
        except SQLAlchemyError as exc:
            raise DocumentStoreError("delete", collection, str(exc)) from exc
        await self._notify({collection})

    def batch(self) -> "SQLAlchemyWriteBatch":
        return SQLAlchemyWriteBatch(self)


class SQLAlchemyWriteBatch(WriteBatch):
    """Queued writes applied inside a single database transaction."""

    def __init__(self, store: SQLAlchemyDocumentStore):
        self._store = store
        self._operations: list[tuple[str, str, str, dict[str, Any] | None]] = []

    def update(self, collection: str, doc_id: str, patch: dict[str, Any]) -> None:
        self._operations.append(("update", collection, doc_id, dict(patch)))

    def delete(self, collection: str, doc_id: str) -> None:
        self._operations.append(("delete", collection, doc_id, None))

    @property
    def size(self) -> int:
        return len(self._operations)

    async def commit(self) -> None:
        if not self._operations:
            return
        collections = {op[1] for op in self._operations}
        label = ",".join(sorted(collections))
        now = datetime.now(timezone.utc)
        try:
            async with self._store._session_factory() as session:
                async with session.begin():
                    for kind, collection, doc_id, patch in self._operations:
                        model = await session.get(DocumentModel, (collection, doc_id))
                        if kind == "delete":
                            if model is not None:
                                await session.delete(model)
                            continue
                        if model is None:
                            raise BatchCommitError(
                                label, self.size, f"document {collection}/{doc_id} does not exist"
                            )
                        model.data = {**(model.data or {}), **encode_value(patch, now)}
                        model.updated_at = now
        except SQLAlchemyError as exc:
            raise BatchCommitError(label, self.size, str(exc)) from exc
        logger.debug("Committed batch of %d write(s) on %s", self.size, label)
        self._operations = []
        await self._store._notify(collections)
