"""V1 API router — aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from studio_tracker.presentation.api.v1.endpoints.health import router as health_router
from studio_tracker.presentation.api.v1.endpoints.session import router as session_router
from studio_tracker.presentation.api.v1.endpoints.data import router as data_router
from studio_tracker.presentation.api.v1.endpoints.notifications import router as notifications_router
from studio_tracker.presentation.api.v1.endpoints.chat import router as chat_router
from studio_tracker.presentation.api.v1.endpoints.media import router as media_router

router = APIRouter(prefix="/v1")
router.include_router(health_router)
router.include_router(session_router)
router.include_router(data_router)
router.include_router(notifications_router)
router.include_router(chat_router)
router.include_router(media_router)
