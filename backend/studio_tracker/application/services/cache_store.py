"""Entity cache store — per-collection in-memory caches with explicit invalidation.

Each cached collection moves between three states: unfetched, loading and
populated. Reads are served from the cache until a caller invalidates it or
asks for a forced refresh; writes elsewhere in the app either patch the cache
in place (``mutate``) or drop it (``invalidate``) so the next read goes back
to the store. Nothing here listens to live pushes.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from studio_tracker.application.interfaces import CollectionQuery, DocumentStore
from studio_tracker.domain.entities import (
    ENTITY_CLASSES,
    CacheEntry,
    CacheState,
    EntityType,
    PostProduction,
    Project,
    Script,
    Video,
)
from studio_tracker.infrastructure.logging.colored_logger import SyncLogger, SyncStage

logger = logging.getLogger(__name__)
slog = SyncLogger("studio_tracker.sync.cache")

T = TypeVar("T")
Loader = Callable[[], Awaitable[list[T]]]
Updater = Callable[[list[T] | None], list[T]]

# Newest-first ordering field per cached collection.
CACHE_ORDERING: dict[EntityType, str] = {
    EntityType.PROJECT: "createdAt",
    EntityType.VIDEO: "shootDay",
    EntityType.SCRIPT: "createdAt",
    EntityType.POST_PRODUCTION: "createdAt",
}


class EntityCache(Generic[T]):
    """Cache for one entity type.

    Concurrent non-forced fetches while a read is in flight share that read.
    Every ``invalidate`` or ``mutate`` starts a new generation; a read that
    started in an older generation still answers its own caller but is not
    allowed to overwrite the cache.
    """

    def __init__(self, name: str, loader: Loader[T], *, timeout: float | None = None):
        self._name = name
        self._loader = loader
        self._timeout = timeout
        self._items: list[T] | None = None
        self._inflight: asyncio.Future[list[T]] | None = None
        self._generation = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> CacheState:
        if self._inflight is not None:
            return CacheState.LOADING
        if self._items is not None:
            return CacheState.POPULATED
        return CacheState.UNFETCHED

    @property
    def items(self) -> list[T] | None:
        return self._items

    def entry(self) -> CacheEntry[T]:
        return CacheEntry(state=self.state, items=self._items)

    async def fetch(self, force_refresh: bool = False) -> list[T]:
        """Return the cached list, reading from the store only when needed.

        A failed read returns an empty list and leaves the cache as it was,
        so the next call retries instead of serving a cached empty result.
        """
        if self._items is not None and not force_refresh:
            slog.detail(f"{self._name} served from cache", count=len(self._items))
            return self._items

        if self._inflight is not None and not force_refresh:
            slog.detail(f"{self._name} joining in-flight read")
            return await asyncio.shield(self._inflight)

        inflight: asyncio.Future[list[T]] = asyncio.get_running_loop().create_future()
        self._inflight = inflight
        generation = self._generation
        items: list[T] = []
        try:
            with slog.timed_step(SyncStage.FETCH, f"Reading {self._name}", forced=force_refresh):
                items = await self._load()
        except Exception:
            logger.warning("Fetching %s failed; cache left retryable", self._name)
            items = []
        else:
            if generation == self._generation:
                self._items = items
            else:
                logger.debug("Discarding %s read that started before the cache changed", self._name)
        finally:
            if self._inflight is inflight:
                self._inflight = None
            if not inflight.done():
                inflight.set_result(items)
        return items

    def invalidate(self) -> None:
        """Drop the cached list so the next fetch reads from the store."""
        self._items = None
        self._inflight = None
        self._generation += 1
        slog.detail(f"{self._name} invalidated")

    def mutate(self, updater: Updater[T]) -> list[T]:
        """Apply ``updater`` to the cached list without touching the store.

        ``updater`` receives None when nothing is cached yet; its result
        becomes the populated cache either way.
        """
        self._items = list(updater(self._items))
        self._inflight = None
        self._generation += 1
        slog.detail(f"{self._name} patched in place", count=len(self._items))
        return self._items

    async def _load(self) -> list[T]:
        if self._timeout is None:
            return await self._loader()
        return await asyncio.wait_for(self._loader(), timeout=self._timeout)


class DataCacheService:
    """Owns one EntityCache per cached collection, loading from the document store."""

    def __init__(self, store: DocumentStore, *, timeout: float | None = None):
        self._store = store
        self.projects: EntityCache[Project] = EntityCache(
            "projects", self._entity_loader(EntityType.PROJECT), timeout=timeout
        )
        self.videos: EntityCache[Video] = EntityCache(
            "videos", self._entity_loader(EntityType.VIDEO), timeout=timeout
        )
        self.scripts: EntityCache[Script] = EntityCache(
            "scripts", self._entity_loader(EntityType.SCRIPT), timeout=timeout
        )
        self.post_productions: EntityCache[PostProduction] = EntityCache(
            "postproductions", self._entity_loader(EntityType.POST_PRODUCTION), timeout=timeout
        )
        self.clients: EntityCache[str] = EntityCache(
            "clients", self._load_clients, timeout=timeout
        )

    def cache_for(self, entity_type: EntityType) -> EntityCache[Any]:
        return {
            EntityType.PROJECT: self.projects,
            EntityType.VIDEO: self.videos,
            EntityType.SCRIPT: self.scripts,
            EntityType.POST_PRODUCTION: self.post_productions,
            EntityType.CLIENT: self.clients,
        }[entity_type]

    def invalidate_all(self) -> None:
        for entity_type in EntityType:
            self.cache_for(entity_type).invalidate()

    def describe(self) -> dict[str, dict[str, Any]]:
        """State and size of every cache, for health/debug output."""
        result: dict[str, dict[str, Any]] = {}
        for entity_type in EntityType:
            cache = self.cache_for(entity_type)
            items = cache.items
            result[entity_type.value] = {
                "state": cache.state.value,
                "count": len(items) if items is not None else None,
            }
        return result

    def _entity_loader(self, entity_type: EntityType) -> Loader[Any]:
        entity_cls = ENTITY_CLASSES[entity_type]
        query = CollectionQuery(
            collection=entity_type.value,
            order_by=CACHE_ORDERING[entity_type],
            descending=True,
        )

        async def load() -> list[Any]:
            documents = await self._store.get_all(query)
            return [entity_cls.from_document(doc) for doc in documents]

        return load

    async def _load_clients(self) -> list[str]:
        documents = await self._store.get_all(CollectionQuery(collection=EntityType.CLIENT.value))
        names = {doc.get("name") for doc in documents}
        return sorted(name for name in names if isinstance(name, str) and name)
