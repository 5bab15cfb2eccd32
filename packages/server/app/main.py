"""
Planner API Server

Entry point for the FastAPI application.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import Settings, get_settings
from app.core.database import get_session_context
from app.core.logging import configure_logging
from app.core.middleware import RequestContextMiddleware, SecurityHeadersMiddleware
from app.core.redis import close_redis, get_redis, redis_available
from app.api.v1 import router as api_v1_router
from app.services.undo import MemoryUndoStore, RedisUndoStore, UndoStore

settings = get_settings()
log = structlog.get_logger()


async def build_undo_store(settings: Settings) -> UndoStore:
    if settings.undo_backend == "redis":
        return RedisUndoStore(await get_redis(), ttl_seconds=settings.undo_ttl_seconds)
    return MemoryUndoStore(
        ttl_seconds=settings.undo_ttl_seconds,
        max_entries=settings.undo_max_entries,
    )


def create_app(undo_store: UndoStore | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="Planner",
        description="Todos, kanban tasks and the todo archive.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.undo_store = undo_store

    # Middleware (last added runs outermost)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # API routes
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Liveness check endpoint."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check(request: Request):
        """Readiness check: database, plus Redis when it backs the undo store."""
        checks = {"database": True}
        try:
            async with get_session_context() as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as exc:
            log.warning("ready.database_unavailable", error=str(exc))
            checks["database"] = False

        if isinstance(request.app.state.undo_store, RedisUndoStore):
            checks["redis"] = await redis_available()

        if all(checks.values()):
            return {"status": "ready", "checks": checks}
        return JSONResponse(status_code=503, content={"status": "unavailable", "checks": checks})

    @app.on_event("startup")
    async def on_startup():
        if app.state.undo_store is None:
            app.state.undo_store = await build_undo_store(settings)
        log.info("planner.starting", undo_backend=type(app.state.undo_store).__name__)

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("planner.shutting_down")
        await close_redis()

    return app


app = create_app()
