"""Production data endpoints — cached lists plus writes that keep the caches consistent."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from studio_tracker.application.schemas import (
    BulkDeleteRequest,
    BulkResultResponse,
    BulkUpdateRequest,
    CacheStateResponse,
    EntityPatch,
    EntityResponse,
    PostProductionCreate,
    ProjectCreate,
    ScriptCreate,
    StoreFields,
    VideoCreate,
)
from studio_tracker.application.services import DataCacheService, ProductionService
from studio_tracker.domain.entities import EntityType, ProductionEntity
from studio_tracker.domain.exceptions import DocumentStoreError, EntityNotFoundError
from studio_tracker.infrastructure.dependencies import (
    get_cache_service,
    get_current_session,
    get_production_service,
)

router = APIRouter(
    prefix="/data",
    tags=["Data"],
    dependencies=[Depends(get_current_session)],
)


def _to_response(entity_type: EntityType, entity: ProductionEntity) -> EntityResponse:
    return EntityResponse(
        id=entity.id,
        type=entity_type.value,
        display_name=entity.display_name,
        created_at=entity.created_at,
        updated_at=entity.updated_at,
        data=entity.to_document(),
    )


def _require_entity(entity_type: EntityType) -> None:
    if entity_type is EntityType.CLIENT:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Clients are a name list; use GET /data/clients",
        )


def _store_failure(exc: DocumentStoreError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))


# ── Cache state ─────────────────────────────────────────────────────


@router.get("/cache", response_model=dict[str, CacheStateResponse])
async def cache_state(
    cache: DataCacheService = Depends(get_cache_service),
) -> dict[str, CacheStateResponse]:
    """State and size of every entity cache."""
    return {name: CacheStateResponse(**info) for name, info in cache.describe().items()}


@router.post("/cache/invalidate", status_code=status.HTTP_204_NO_CONTENT)
async def invalidate_cache(
    entity_type: EntityType | None = None,
    cache: DataCacheService = Depends(get_cache_service),
) -> None:
    """Drop one cache, or all of them when no type is given."""
    if entity_type is None:
        cache.invalidate_all()
    else:
        cache.cache_for(entity_type).invalidate()


@router.get("/clients", response_model=list[str])
async def list_clients(
    force_refresh: bool = False,
    cache: DataCacheService = Depends(get_cache_service),
) -> list[str]:
    return await cache.clients.fetch(force_refresh=force_refresh)


# ── Reads ───────────────────────────────────────────────────────────


@router.get("/{entity_type}", response_model=list[EntityResponse])
async def list_entities(
    entity_type: EntityType,
    force_refresh: bool = False,
    service: ProductionService = Depends(get_production_service),
) -> list[EntityResponse]:
    """Cached list, newest first. ``force_refresh`` re-reads the store."""
    _require_entity(entity_type)
    items = await service.list_entities(entity_type, force_refresh=force_refresh)
    return [_to_response(entity_type, item) for item in items]


@router.get("/{entity_type}/{entity_id}", response_model=EntityResponse)
async def get_entity(
    entity_type: EntityType,
    entity_id: str,
    service: ProductionService = Depends(get_production_service),
) -> EntityResponse:
    _require_entity(entity_type)
    try:
        entity = await service.get(entity_type, entity_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DocumentStoreError as e:
        raise _store_failure(e)
    return _to_response(entity_type, entity)


# ── Creates ─────────────────────────────────────────────────────────


async def _create(
    service: ProductionService, entity_type: EntityType, data: StoreFields
) -> EntityResponse:
    try:
        entity = await service.create(entity_type, data.to_store())
    except DocumentStoreError as e:
        raise _store_failure(e)
    return _to_response(entity_type, entity)


@router.post("/projects", response_model=EntityResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    data: ProjectCreate,
    service: ProductionService = Depends(get_production_service),
) -> EntityResponse:
    """Create a project and notify every active user."""
    return await _create(service, EntityType.PROJECT, data)


@router.post("/videos", response_model=EntityResponse, status_code=status.HTTP_201_CREATED)
async def create_video(
    data: VideoCreate,
    service: ProductionService = Depends(get_production_service),
) -> EntityResponse:
    return await _create(service, EntityType.VIDEO, data)


@router.post("/scripts", response_model=EntityResponse, status_code=status.HTTP_201_CREATED)
async def create_script(
    data: ScriptCreate,
    service: ProductionService = Depends(get_production_service),
) -> EntityResponse:
    """Create a script; a linked video gets a back-reference to it."""
    return await _create(service, EntityType.SCRIPT, data)


@router.post(
    "/postproductions", response_model=EntityResponse, status_code=status.HTTP_201_CREATED
)
async def create_post_production(
    data: PostProductionCreate,
    service: ProductionService = Depends(get_production_service),
) -> EntityResponse:
    return await _create(service, EntityType.POST_PRODUCTION, data)


# ── Updates and deletes ─────────────────────────────────────────────


@router.patch("/{entity_type}/{entity_id}", response_model=EntityResponse | None)
async def update_entity(
    entity_type: EntityType,
    entity_id: str,
    data: EntityPatch,
    service: ProductionService = Depends(get_production_service),
) -> EntityResponse | None:
    _require_entity(entity_type)
    try:
        entity = await service.update(entity_type, entity_id, data.to_store())
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DocumentStoreError as e:
        raise _store_failure(e)
    return _to_response(entity_type, entity) if entity else None


@router.delete("/{entity_type}/{entity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entity(
    entity_type: EntityType,
    entity_id: str,
    service: ProductionService = Depends(get_production_service),
) -> None:
    _require_entity(entity_type)
    try:
        await service.delete(entity_type, entity_id)
    except DocumentStoreError as e:
        raise _store_failure(e)


@router.post("/{entity_type}/bulk-delete", response_model=BulkResultResponse)
async def bulk_delete(
    entity_type: EntityType,
    data: BulkDeleteRequest,
    service: ProductionService = Depends(get_production_service),
) -> BulkResultResponse:
    """Delete all selected rows or none of them."""
    _require_entity(entity_type)
    try:
        affected = await service.bulk_delete(entity_type, data.ids)
    except DocumentStoreError as e:
        raise _store_failure(e)
    return BulkResultResponse(affected=affected)


@router.post("/{entity_type}/bulk-update", response_model=BulkResultResponse)
async def bulk_update(
    entity_type: EntityType,
    data: BulkUpdateRequest,
    service: ProductionService = Depends(get_production_service),
) -> BulkResultResponse:
    _require_entity(entity_type)
    changes: dict[str, Any] = dict(data.changes)
    try:
        affected = await service.bulk_update(entity_type, data.ids, changes)
    except DocumentStoreError as e:
        raise _store_failure(e)
    return BulkResultResponse(affected=affected)
