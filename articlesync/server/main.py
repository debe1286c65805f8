"""ArticleSync HTTP server entry point.

Builds a FastAPI app whose lifespan creates the database engine, the session
factory and the ArticleSyncService, and disposes the engine on shutdown.

Entry point:
    uvicorn articlesync.server.main:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

from articlesync.api.router import api_router
from articlesync.config import settings
from articlesync.db.session import build_engine, build_session_factory
from articlesync.sync.service import ArticleSyncService

logger = logging.getLogger(__name__)


def custom_generate_unique_id(route: APIRoute) -> str:
    """Generate deterministic, SDK-friendly operation IDs for REST routes."""
    if route.tags:
        return f"{route.tags[0]}-{route.name}"
    return route.name


def create_app(service: ArticleSyncService | None = None) -> FastAPI:
    """Build the FastAPI app.

    Args:
        service: Pre-built service (tests pass one bound to their own
                 database).  When None, the lifespan builds one from
                 settings.database_url and disposes its engine on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if service is not None:
            app.state.sync_service = service
            yield
            return

        logger.info("ArticleSync server starting up...")
        engine = build_engine()
        app.state.sync_service = ArticleSyncService.from_session_factory(
            build_session_factory(engine)
        )
        logger.info("Sync service ready (hash algorithm: %s)", settings.content_hash_algorithm)

        yield

        logger.info("ArticleSync server shutting down, disposing database engine...")
        await engine.dispose()
        logger.info("Database engine disposed.")

    app = FastAPI(
        title="ArticleSync",
        description="Conflict detection, version history and sync status for articles",
        version="0.1.0",
        lifespan=lifespan,
        generate_unique_id_function=custom_generate_unique_id,
    )
    if service is not None:
        # Available without running the lifespan (e.g. plain ASGITransport in tests)
        app.state.sync_service = service

    @app.get("/health")
    async def health() -> JSONResponse:
        """Simple health check endpoint for load balancers and readiness probes."""
        return JSONResponse({"status": "ok", "service": "articlesync"})

    app.include_router(api_router)
    return app


def _configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


_configure_logging()
app = create_app()
