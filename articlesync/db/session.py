"""Async database engine and session factory for ArticleSync.

Usage:
    from articlesync.db.session import build_engine, build_session_factory

    engine = build_engine()
    session_factory = build_session_factory(engine)

    async with session_factory() as session:
        result = await session.execute(select(Article))

IMPORTANT: Each operation must get its own session from the factory.
AsyncSession is NOT safe to share across concurrent coroutines or requests.
The repositories in articlesync.db.repositories open a fresh session per call
so that every field update is committed on its own.

The engine and factory are built by whoever owns the process (the FastAPI
lifespan, the CLI, a test fixture) and handed to ArticleSyncService; nothing
here is created at import time.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from articlesync.config import settings
from articlesync.db.models import Base


def build_engine(database_url: str | None = None, **kwargs) -> AsyncEngine:
    """Create an async engine for *database_url* (defaults to settings.database_url).

    Pool sizing is only applied to server databases; SQLite uses its own
    single-connection pool and rejects pool_size/max_overflow.
    """
    url = database_url or settings.database_url
    options: dict = {"echo": settings.db_echo}
    if not url.startswith("sqlite"):
        options.update(pool_size=10, max_overflow=20)
    options.update(kwargs)
    return create_async_engine(url, **options)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Return a session factory bound to *engine*.

    expire_on_commit=False keeps ORM objects readable after the session that
    loaded them has committed and closed.
    """
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables directly from the ORM metadata.

    Used by tests and `articlesync init-db` for local SQLite databases;
    deployed databases are managed with the alembic migrations instead.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
