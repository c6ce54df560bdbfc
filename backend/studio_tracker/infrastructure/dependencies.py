"""FastAPI dependency injection — wires infrastructure to application layer."""

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from studio_tracker.config import Settings, get_settings
from studio_tracker.application.interfaces import MediaUploader
from studio_tracker.application.services import (
    ChatEngine,
    DataCacheService,
    NotificationEngine,
    ProductionService,
    SessionStore,
    SSEManager,
    StudioRuntime,
)
from studio_tracker.domain.entities import Session
from studio_tracker.domain.exceptions import AuthenticationError
from studio_tracker.infrastructure.cloudinary.cloudinary_uploader import CloudinaryUploader
from studio_tracker.infrastructure.database.repositories import SQLAlchemyDocumentStore
from studio_tracker.infrastructure.notifications.browser_notifier import BrowserNotifier
from studio_tracker.infrastructure.storage.json_local_storage import JsonFileLocalStorage

_sse_manager: SSEManager | None = None
_runtime: StudioRuntime | None = None


def get_sse_manager() -> SSEManager:
    """Process-wide SSE broadcaster."""
    global _sse_manager
    if _sse_manager is None:
        _sse_manager = SSEManager()
    return _sse_manager


def build_runtime(
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings | None = None,
    publisher: SSEManager | None = None,
) -> StudioRuntime:
    """Assemble a StudioRuntime from settings and a database session factory."""
    settings = settings or get_settings()
    publisher = publisher or get_sse_manager()
    return StudioRuntime(
        store=SQLAlchemyDocumentStore(session_factory),
        local_storage=JsonFileLocalStorage(settings.local_storage_file),
        publisher=publisher,
        uploader=CloudinaryUploader(
            cloud_name=settings.cloudinary_cloud_name,
            upload_preset=settings.cloudinary_upload_preset,
            api_base=settings.cloudinary_api_base,
            timeout=settings.cloudinary_timeout,
        ),
        native_notifier=BrowserNotifier(publisher),
        fetch_timeout=settings.fetch_timeout_seconds,
        chat_message_limit=settings.chat_message_limit,
        chat_lookup_limit=settings.chat_lookup_limit,
        chat_unread_fallback_hours=settings.chat_unread_fallback_hours,
        notification_limit=settings.notification_limit,
        toast_duration_seconds=settings.toast_duration_seconds,
        notification_icon=settings.native_notification_icon,
    )


def set_runtime(runtime: StudioRuntime | None) -> None:
    global _runtime
    _runtime = runtime


def current_runtime() -> StudioRuntime | None:
    return _runtime


def get_runtime() -> StudioRuntime:
    if _runtime is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Studio runtime is not running",
        )
    return _runtime


def get_session_store(runtime: StudioRuntime = Depends(get_runtime)) -> SessionStore:
    return runtime.session_store


def get_current_session(runtime: StudioRuntime = Depends(get_runtime)) -> Session:
    """Signed-in identity, or 401 when nobody is signed in."""
    try:
        return runtime.session_store.require_session()
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)


def get_cache_service(runtime: StudioRuntime = Depends(get_runtime)) -> DataCacheService:
    return runtime.cache


def get_production_service(runtime: StudioRuntime = Depends(get_runtime)) -> ProductionService:
    return runtime.production


def get_notification_engine(runtime: StudioRuntime = Depends(get_runtime)) -> NotificationEngine:
    return runtime.notifications


def get_chat_engine(runtime: StudioRuntime = Depends(get_runtime)) -> ChatEngine:
    return runtime.chat


def get_media_uploader(runtime: StudioRuntime = Depends(get_runtime)) -> MediaUploader:
    uploader = runtime.uploader
    if uploader is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Media uploads are not available",
        )
    return uploader


def get_browser_notifier(runtime: StudioRuntime = Depends(get_runtime)) -> BrowserNotifier:
    notifier = runtime.native_notifier
    if not isinstance(notifier, BrowserNotifier):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Browser notifications are not available",
        )
    return notifier
