"""Health check endpoint — always available, reports runtime state when running."""

from fastapi import APIRouter

from studio_tracker.config import get_settings
from studio_tracker.infrastructure.dependencies import current_runtime

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check() -> dict:
    """Returns the current application health status."""
    settings = get_settings()
    result: dict = {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.app_env,
    }
    runtime = current_runtime()
    if runtime is not None:
        result["signed_in"] = runtime.session is not None
        result["caches"] = runtime.cache.describe()
        result["notifications"] = runtime.notifications.status.value
        result["chat"] = runtime.chat.status.value
    return result
