"""Article sync REST endpoints for the ArticleSync API.

Endpoints (all under /articles/{article_id}):
- GET    /conflict            — current conflict state
- POST   /conflict            — record a divergent remote copy
- POST   /resolve             — resolve a pending conflict (local | remote)
- PUT    /sync-status         — set sync status / error slot
- POST   /versions/increment  — record a local edit
- GET    /versions            — version history, newest first
- DELETE /versions            — prune history to the newest N snapshots

The REST layer is a thin HTTP adapter over ArticleSyncService; it is how
the sync orchestrator running in another process reaches the service.

Error mapping:
- ArticleNotFoundError       → 404
- MissingRemoteContentError  → 409
- InvalidSyncTransitionError → 409
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from articlesync.config import settings
from articlesync.db.models import SyncStatus, VersionSource
from articlesync.errors import (
    ArticleNotFoundError,
    ArticleSyncError,
    InvalidSyncTransitionError,
    MissingRemoteContentError,
)
from articlesync.sync.conflict import ConflictResolution
from articlesync.sync.service import ArticleSyncService

logger = logging.getLogger(__name__)

articles_router = APIRouter(prefix="/articles", tags=["articles"])


def get_sync_service(request: Request) -> ArticleSyncService:
    """FastAPI dependency returning the service built in the app lifespan."""
    return request.app.state.sync_service


def _http_error(exc: ArticleSyncError) -> HTTPException:
    if isinstance(exc, ArticleNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (MissingRemoteContentError, InvalidSyncTransitionError)):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


# ---------------------------------------------------------------------------
# Request / response schemas
# ---------------------------------------------------------------------------


class ConflictStateResponse(BaseModel):
    """Response body for GET /articles/{id}/conflict."""

    has_conflict: bool
    local_version: int
    remote_version: int | None
    remote_content: str | None
    remote_title: str | None
    remote_detected_at: datetime.datetime | None
    sync_status: SyncStatus


class MarkConflictRequest(BaseModel):
    """Request body for POST /articles/{id}/conflict."""

    remote_content: str
    remote_title: str
    remote_version: int | None = Field(default=None, ge=0)


class ResolveConflictRequest(BaseModel):
    """Request body for POST /articles/{id}/resolve."""

    resolution: ConflictResolution


class ArticleResponse(BaseModel):
    """Sync-relevant view of an article."""

    id: int
    title: str
    content: str
    content_hash: str | None
    local_version: int
    remote_version: int | None
    has_conflict: bool
    sync_status: SyncStatus
    sync_error: str | None
    last_modified_by: str | None

    model_config = {"from_attributes": True}


class SyncStatusRequest(BaseModel):
    """Request body for PUT /articles/{id}/sync-status."""

    status: SyncStatus
    error: str | None = None


class IncrementVersionRequest(BaseModel):
    """Request body for POST /articles/{id}/versions/increment."""

    device_id: str | None = None


class IncrementVersionResponse(BaseModel):
    local_version: int


class ArticleVersionResponse(BaseModel):
    """Single snapshot in a version history response."""

    id: int
    article_id: int
    version: int
    title: str
    content: str
    content_hash: str | None
    source: VersionSource
    device_id: str | None
    created_at: datetime.datetime

    model_config = {"from_attributes": True}


class CleanVersionsResponse(BaseModel):
    removed: int


ServiceDep = Annotated[ArticleSyncService, Depends(get_sync_service)]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@articles_router.get(
    "/{article_id}/conflict",
    response_model=ConflictStateResponse,
    operation_id="check_conflict",
)
async def check_conflict_endpoint(article_id: int, service: ServiceDep) -> ConflictStateResponse:
    try:
        result = await service.check_conflict(article_id)
    except ArticleSyncError as exc:
        raise _http_error(exc) from exc
    return ConflictStateResponse(**asdict(result))


@articles_router.post(
    "/{article_id}/conflict",
    response_model=ConflictStateResponse,
    operation_id="mark_conflict",
)
async def mark_conflict_endpoint(
    article_id: int, body: MarkConflictRequest, service: ServiceDep
) -> ConflictStateResponse:
    try:
        await service.mark_conflict(
            article_id, body.remote_content, body.remote_title, body.remote_version
        )
        result = await service.check_conflict(article_id)
    except ArticleSyncError as exc:
        raise _http_error(exc) from exc
    return ConflictStateResponse(**asdict(result))


@articles_router.post(
    "/{article_id}/resolve",
    response_model=ArticleResponse,
    operation_id="resolve_conflict",
)
async def resolve_conflict_endpoint(
    article_id: int, body: ResolveConflictRequest, service: ServiceDep
) -> ArticleResponse:
    try:
        article = await service.resolve_conflict(article_id, body.resolution)
    except ArticleSyncError as exc:
        raise _http_error(exc) from exc
    return ArticleResponse.model_validate(article)


@articles_router.put(
    "/{article_id}/sync-status",
    status_code=204,
    operation_id="update_sync_status",
)
async def update_sync_status_endpoint(
    article_id: int, body: SyncStatusRequest, service: ServiceDep
) -> None:
    try:
        await service.update_sync_status(article_id, body.status, body.error)
    except ArticleSyncError as exc:
        raise _http_error(exc) from exc


@articles_router.post(
    "/{article_id}/versions/increment",
    response_model=IncrementVersionResponse,
    operation_id="increment_version",
)
async def increment_version_endpoint(
    article_id: int, body: IncrementVersionRequest, service: ServiceDep
) -> IncrementVersionResponse:
    try:
        new_version = await service.increment_version(article_id, body.device_id)
    except ArticleSyncError as exc:
        raise _http_error(exc) from exc
    return IncrementVersionResponse(local_version=new_version)


@articles_router.get(
    "/{article_id}/versions",
    response_model=list[ArticleVersionResponse],
    operation_id="get_version_history",
)
async def get_version_history_endpoint(
    article_id: int,
    service: ServiceDep,
    limit: Annotated[int | None, Query(ge=0, le=500)] = None,
) -> list[ArticleVersionResponse]:
    versions = await service.get_version_history(article_id, limit)
    return [ArticleVersionResponse.model_validate(v) for v in versions]


@articles_router.delete(
    "/{article_id}/versions",
    response_model=CleanVersionsResponse,
    operation_id="clean_old_versions",
)
async def clean_old_versions_endpoint(
    article_id: int,
    service: ServiceDep,
    keep: Annotated[int, Query(ge=0)] = settings.version_keep_count,
) -> CleanVersionsResponse:
    removed = await service.clean_old_versions(article_id, keep)
    return CleanVersionsResponse(removed=removed)
