"""Service access for ArticleSync CLI commands.

Typer commands are synchronous, so each command builds a short-lived engine
and ArticleSyncService, runs one coroutine against it with asyncio.run(),
and disposes the engine before returning.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from articlesync.db.session import build_engine, build_session_factory, create_schema
from articlesync.sync.service import ArticleSyncService

T = TypeVar("T")


def run_with_service(
    operation: Callable[[ArticleSyncService], Awaitable[T]],
    database_url: str | None = None,
) -> T:
    """Run *operation* against a freshly built service and return its result."""

    async def _run() -> T:
        engine = build_engine(database_url)
        try:
            service = ArticleSyncService.from_session_factory(build_session_factory(engine))
            return await operation(service)
        finally:
            await engine.dispose()

    return asyncio.run(_run())


def init_schema(database_url: str | None = None) -> None:
    """Create the articles/article_versions tables if they do not exist."""

    async def _run() -> None:
        engine = build_engine(database_url)
        try:
            await create_schema(engine)
        finally:
            await engine.dispose()

    asyncio.run(_run())
