"""Top-level FastAPI APIRouter for the ArticleSync REST API (v1).

Mount this router on the FastAPI app to expose all /api/v1/ endpoints.

Prefix:  /api/v1
Tags:    ["rest-api"]

Sub-routers included:
- articles_router — conflict check/mark/resolve, sync status, version history
"""

from __future__ import annotations

from fastapi import APIRouter

from articlesync.api.routes.articles import articles_router

api_router = APIRouter(prefix="/api/v1", tags=["rest-api"])

api_router.include_router(articles_router)
