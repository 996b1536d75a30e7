"""FastAPI application for the modification service."""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request

from modification_service import __version__
from modification_service.configuration.common_config import AppSettings, get_app_settings
from modification_service.configuration.logging_config import configure_logging
from modification_service.orchestrator.factory import build_orchestrator
from modification_service.orchestrator.orchestrator import ModificationOrchestrator
from modification_service.persistence.conversation_store import create_conversation_store
from modification_service.routers.modification_router import router as modification_router
from modification_service.utils.error_handler import ErrorHandler
from modification_service.utils.redis_client import RedisKeyValueCache, create_redis_client

logger = structlog.get_logger(__name__)


def create_app(settings: Optional[AppSettings] = None, orchestrator: Optional[ModificationOrchestrator] = None) -> FastAPI:
    """Create the application. ``orchestrator`` overrides the settings-built one (tests)."""
    settings = settings or get_app_settings()
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cache = None
        if orchestrator is None:
            cache = RedisKeyValueCache(create_redis_client(settings.redis))
            app.state.cache = cache
            app.state.orchestrator = build_orchestrator(
                settings,
                cache,
                conversation_store=create_conversation_store(settings.postgres),
            )
        else:
            app.state.orchestrator = orchestrator
        logger.info("Application started", project_root=settings.modification.PROJECT_ROOT)
        yield
        if cache is not None:
            await cache.close()
            logger.info("Redis client closed on shutdown")
        logger.info("Application shutting down")

    app = FastAPI(
        title="Modification Service",
        description="Classifies change requests and applies validated edits to a generated React project",
        version=__version__,
        lifespan=lifespan,
    )
    ErrorHandler().register_exception_handlers(app)
    app.include_router(modification_router)

    @app.get("/health")
    async def health(request: Request) -> dict:
        cache = getattr(request.app.state, "cache", None)
        cache_ok = await cache.ping() if cache is not None else None
        return {"status": "ok", "cache": {"healthy": cache_ok}}

    return app


def serve_api() -> None:
    settings = get_app_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.API_PORT)


if __name__ == "__main__":
    serve_api()
