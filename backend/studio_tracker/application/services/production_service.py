"""Production service — writes to tracked entities and keeps the caches consistent.

Every write goes to the document store first. Only once it succeeded is the
matching cache patched in place or dropped, following a fixed policy per
entity type. A failed write raises and leaves every cache untouched.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, cast

from studio_tracker.application.interfaces import DocumentStore
from studio_tracker.application.services.cache_store import DataCacheService, EntityCache
from studio_tracker.application.services.notification_sender import NotificationSender
from studio_tracker.domain.entities import (
    ENTITY_CLASSES,
    SERVER_TIMESTAMP,
    Document,
    EntityType,
    ProductionEntity,
    Project,
)
from studio_tracker.domain.exceptions import EntityNotFoundError
from studio_tracker.infrastructure.logging.colored_logger import SyncLogger, SyncStage

logger = logging.getLogger(__name__)
slog = SyncLogger("studio_tracker.sync.writes")

CLIENTS_COLLECTION = EntityType.CLIENT.value


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _resolved(data: dict[str, Any], now: datetime) -> dict[str, Any]:
    """Replace pending server timestamps with a local clock reading for the cached copy."""
    return {k: (now if v is SERVER_TIMESTAMP else v) for k, v in data.items()}


class ProductionService:
    """Create, update and delete projects, videos, scripts and post-productions."""

    def __init__(
        self,
        store: DocumentStore,
        cache: DataCacheService,
        sender: NotificationSender,
    ):
        self._store = store
        self._cache = cache
        self._sender = sender

    # ── Reads ───────────────────────────────────────────────────────

    async def list_entities(self, entity_type: EntityType, force_refresh: bool = False) -> list[Any]:
        return await self._cache.cache_for(entity_type).fetch(force_refresh=force_refresh)

    async def get(self, entity_type: EntityType, entity_id: str) -> ProductionEntity:
        """Cached copy when available, otherwise a one-shot store read."""
        cache = self._cache.cache_for(entity_type)
        for item in cache.items or []:
            if item.id == entity_id:
                return item
        doc = await self._store.get(entity_type.value, entity_id)
        if doc is None:
            raise EntityNotFoundError(entity_type.value, entity_id)
        return ENTITY_CLASSES[entity_type].from_document(doc)

    # ── Single-entity writes ────────────────────────────────────────

    async def create(self, entity_type: EntityType, data: dict[str, Any]) -> ProductionEntity:
        data = dict(data)
        if entity_type is EntityType.VIDEO:
            await self._fill_project_fields(data)
        if entity_type is EntityType.SCRIPT:
            await self._register_client(data.get("clientName"))

        data["createdAt"] = SERVER_TIMESTAMP
        data["updatedAt"] = SERVER_TIMESTAMP
        with slog.timed_step(SyncStage.WRITE, f"Creating {entity_type.value} record"):
            new_id = await self._store.create(entity_type.value, data)

        entity = ENTITY_CLASSES[entity_type].from_document(
            Document(id=new_id, data=_resolved(data, _now()))
        )
        cache = self._cache.cache_for(entity_type)

        if entity_type is EntityType.VIDEO:
            cache.invalidate()
        elif entity_type is EntityType.SCRIPT:
            cache.invalidate()
            await self._link_script_to_video(new_id, data)
        else:
            self._apply(cache, lambda items: [entity, *items], populate=True)

        await self._notify_created(entity_type, entity, data)
        logger.info("Created %s %s", entity_type.value, new_id)
        return entity

    async def update(
        self, entity_type: EntityType, entity_id: str, patch: dict[str, Any]
    ) -> ProductionEntity | None:
        """Merge ``patch`` (store field names) into one entity.

        Returns the patched cached copy, or None when the entity was not
        cached.
        """
        patch = dict(patch)
        if entity_type is EntityType.VIDEO:
            await self._fill_project_fields(patch)
        patch["updatedAt"] = SERVER_TIMESTAMP

        with slog.timed_step(SyncStage.WRITE, f"Updating {entity_type.value} {entity_id}"):
            await self._store.update(entity_type.value, entity_id, patch)

        cache = self._cache.cache_for(entity_type)
        previous = next((i for i in cache.items or [] if i.id == entity_id), None)
        local_patch = _resolved(patch, _now())
        self._apply(
            cache,
            lambda items: [i.with_changes(local_patch) if i.id == entity_id else i for i in items],
        )

        if entity_type is EntityType.SCRIPT:
            linked = patch.get("relatedVideoId") or (previous.related_video_id if previous else None)
            if linked:
                script_data = {**(previous.to_document() if previous else {}), **patch}
                await self._link_script_to_video(entity_id, script_data)

        return next((i for i in cache.items or [] if i.id == entity_id), None)

    async def delete(self, entity_type: EntityType, entity_id: str) -> None:
        with slog.timed_step(SyncStage.WRITE, f"Deleting {entity_type.value} {entity_id}"):
            await self._store.delete(entity_type.value, entity_id)
        self._apply(
            self._cache.cache_for(entity_type),
            lambda items: [i for i in items if i.id != entity_id],
        )

    # ── Bulk writes ─────────────────────────────────────────────────

    async def bulk_delete(self, entity_type: EntityType, entity_ids: list[str]) -> int:
        """Delete several entities in one atomic batch.

        Raises:
            BatchCommitError: Nothing was deleted and no cache was touched.
        """
        ids = set(entity_ids)
        if not ids:
            return 0
        batch = self._store.batch()
        for entity_id in ids:
            batch.delete(entity_type.value, entity_id)
        with slog.timed_step(SyncStage.WRITE, f"Batch delete of {len(ids)} {entity_type.value}"):
            await batch.commit()
        self._apply(
            self._cache.cache_for(entity_type),
            lambda items: [i for i in items if i.id not in ids],
        )
        return len(ids)

    async def bulk_update(
        self, entity_type: EntityType, entity_ids: list[str], patch: dict[str, Any]
    ) -> int:
        """Apply the same ``patch`` to several entities in one atomic batch."""
        ids = set(entity_ids)
        if not ids:
            return 0
        stored_patch = {**patch, "updatedAt": SERVER_TIMESTAMP}
        batch = self._store.batch()
        for entity_id in ids:
            batch.update(entity_type.value, entity_id, stored_patch)
        with slog.timed_step(SyncStage.WRITE, f"Batch update of {len(ids)} {entity_type.value}"):
            await batch.commit()
        local_patch = _resolved(stored_patch, _now())
        self._apply(
            self._cache.cache_for(entity_type),
            lambda items: [i.with_changes(local_patch) if i.id in ids else i for i in items],
        )
        return len(ids)

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    def _apply(
        cache: EntityCache[Any],
        updater: Callable[[list[Any]], list[Any]],
        *,
        populate: bool = False,
    ) -> None:
        # Only creates populate an unfetched cache; edits leave it unfetched.
        if cache.items is None and not populate:
            cache.invalidate()
            return
        cache.mutate(lambda items: updater(list(items or [])))

    async def _fill_project_fields(self, data: dict[str, Any]) -> None:
        """Copy the parent project's name and client onto a video."""
        project_id = data.get("projectId")
        if not project_id:
            return
        try:
            project = cast(Project, await self.get(EntityType.PROJECT, project_id))
        except EntityNotFoundError:
            logger.warning("Video refers to unknown project %s", project_id)
            return
        data.setdefault("projectName", project.name or project.project_name or "")
        if not data.get("clientName"):
            data["clientName"] = project.client_name or ""

    async def _register_client(self, client_name: Any) -> None:
        """Add a client record the first time a name is used."""
        if not isinstance(client_name, str) or not client_name.strip():
            return
        name = client_name.strip()
        known = await self._cache.clients.fetch()
        if any(c.lower() == name.lower() for c in known):
            return
        await self._store.create(CLIENTS_COLLECTION, {"name": name, "createdAt": SERVER_TIMESTAMP})
        self._cache.clients.invalidate()
        logger.info("Registered new client %s", name)

    async def _link_script_to_video(self, script_id: str, script_data: dict[str, Any]) -> None:
        """Point the related video at this script; a missing video is skipped."""
        video_id = script_data.get("relatedVideoId")
        if not video_id:
            return
        try:
            await self._store.update(
                EntityType.VIDEO.value,
                video_id,
                {
                    "scriptId": script_id,
                    "scriptLink": script_data.get("finalScriptLink") or "",
                    "scriptStatus": script_data.get("status") or "Pending",
                },
            )
        except EntityNotFoundError:
            logger.warning("Script %s refers to unknown video %s; not linked", script_id, video_id)
            return
        self._cache.videos.invalidate()

    async def _notify_created(
        self, entity_type: EntityType, entity: ProductionEntity, data: dict[str, Any]
    ) -> None:
        if entity_type is EntityType.PROJECT:
            await self._sender.notify_new_project(entity.display_name)
        elif entity_type is EntityType.VIDEO:
            await self._sender.notify_video_assigned(
                entity.display_name, data.get("projectName") or ""
            )
        elif entity_type is EntityType.SCRIPT:
            await self._sender.notify_script_assigned(
                data.get("clientName") or "", data.get("contentType")
            )
        elif entity_type is EntityType.POST_PRODUCTION:
            await self._sender.notify_post_production_assigned(
                entity.display_name, data.get("editor") or ""
            )
