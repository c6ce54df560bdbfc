"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studio_tracker.config import get_settings
from studio_tracker.infrastructure.database import Base, async_session_factory, engine
from studio_tracker.infrastructure.dependencies import build_runtime, get_sse_manager, set_runtime
from studio_tracker.infrastructure.logging.log_config import setup_logging
from studio_tracker.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan — create tables, restore the session, attach live feeds."""
    setup_logging()

    # 1. Create the document table
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # 2. Build the runtime; a stored session attaches the engines
    runtime = build_runtime(async_session_factory)
    set_runtime(runtime)
    await runtime.start()

    yield

    # Shutdown
    await runtime.shutdown()
    set_runtime(None)
    sse = get_sse_manager()
    await sse.shutdown()
    await engine.dispose()


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "studio_tracker.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
