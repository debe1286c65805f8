"""Typed repository interfaces for the two ArticleSync entities.

The sync components never touch a session directly.  They talk to an
ArticleRepository and a VersionRepository that expose only the field-level
operations the sync logic needs, so an alternative storage backend only has
to implement these two small interfaces.

The SQLAlchemy implementations open one session per call and commit it
immediately: each call is atomic on its own, multi-step sequences are not.
Callers that need read-modify-write consistency serialize per article with
articlesync.sync.locks.KeyedLock.

Exports: ArticleRepository, VersionRepository,
         SqlArticleRepository, SqlVersionRepository
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from articlesync.db.models import Article, ArticleVersion

# Attributes that callers may change through ArticleRepository.update().
# id and created_at are owned by the database.
_UPDATABLE_ARTICLE_FIELDS = frozenset(
    column.key for column in Article.__table__.columns if column.key not in {"id", "created_at"}
)


def _check_article_fields(values: Mapping[str, Any]) -> None:
    unknown = set(values) - _UPDATABLE_ARTICLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update unknown article fields: {sorted(unknown)}")


# ---------------------------------------------------------------------------
# Abstract interfaces
# ---------------------------------------------------------------------------


class ArticleRepository(ABC):
    """Storage operations on Article rows."""

    @abstractmethod
    async def get(self, article_id: int) -> Article | None:
        """Return the article, or None if the id does not resolve."""
        ...

    @abstractmethod
    async def update(self, article_id: int, values: Mapping[str, Any]) -> bool:
        """Atomically set *values* on one article.

        Returns:
            True if a row was updated, False if the article does not exist.
        """
        ...

    @abstractmethod
    async def update_and_archive(
        self, article_id: int, values: Mapping[str, Any], version: ArticleVersion
    ) -> bool:
        """Set *values* on one article and persist *version* in the same transaction.

        Nothing is written when the article does not exist.

        Returns:
            True if the article was updated and the snapshot stored.
        """
        ...


class VersionRepository(ABC):
    """Storage operations on ArticleVersion rows (append, range query, bulk delete)."""

    @abstractmethod
    async def add(self, version: ArticleVersion) -> ArticleVersion:
        """Persist a new snapshot and return it with its id populated."""
        ...

    @abstractmethod
    async def list_newest_first(
        self,
        article_id: int,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ArticleVersion]:
        """Return snapshots for an article ordered by created_at descending.

        Snapshots created at the same instant are ordered by id descending so
        the order is total.
        """
        ...

    @abstractmethod
    async def delete(self, version_ids: Sequence[int]) -> int:
        """Delete the given snapshots and return how many rows were removed."""
        ...


# ---------------------------------------------------------------------------
# SQLAlchemy implementations
# ---------------------------------------------------------------------------


class SqlArticleRepository(ArticleRepository):
    """ArticleRepository backed by an async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, article_id: int) -> Article | None:
        async with self._session_factory() as session:
            return await session.get(Article, article_id)

    async def update(self, article_id: int, values: Mapping[str, Any]) -> bool:
        _check_article_fields(values)
        if not values:
            return await self.get(article_id) is not None

        async with self._session_factory() as session:
            result = await session.execute(
                update(Article).where(Article.id == article_id).values(**values)
            )
            await session.commit()
        return result.rowcount > 0

    async def update_and_archive(
        self, article_id: int, values: Mapping[str, Any], version: ArticleVersion
    ) -> bool:
        _check_article_fields(values)
        async with self._session_factory() as session:
            result = await session.execute(
                update(Article).where(Article.id == article_id).values(**values)
            )
            if result.rowcount == 0:
                await session.rollback()
                return False
            session.add(version)
            await session.commit()
            await session.refresh(version)
        return True


class SqlVersionRepository(VersionRepository):
    """VersionRepository backed by an async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def add(self, version: ArticleVersion) -> ArticleVersion:
        async with self._session_factory() as session:
            session.add(version)
            await session.commit()
            await session.refresh(version)
        return version

    async def list_newest_first(
        self,
        article_id: int,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ArticleVersion]:
        stmt = (
            select(ArticleVersion)
            .where(ArticleVersion.article_id == article_id)
            .order_by(ArticleVersion.created_at.desc(), ArticleVersion.id.desc())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def delete(self, version_ids: Sequence[int]) -> int:
        if not version_ids:
            return 0
        async with self._session_factory() as session:
            result = await session.execute(
                delete(ArticleVersion).where(ArticleVersion.id.in_(list(version_ids)))
            )
            await session.commit()
        return result.rowcount
