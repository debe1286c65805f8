"""ArticleSyncService — the in-process API of the sync subsystem.

Wires the Version Store, Sync Status Tracker and Conflict Detector to one set
of repositories, one per-article lock registry and one clock, so that every
mutating operation on an article is serialized no matter which component
performs it.

Usage:
    engine = build_engine()
    service = ArticleSyncService.from_session_factory(build_session_factory(engine))

    await service.mark_conflict(article_id, "Remote text", "Remote Title", 7)
    article = await service.resolve_conflict(article_id, "remote")

The service is constructed explicitly by its owner (the FastAPI lifespan,
the CLI, a test) and holds no process-wide state.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from articlesync.db.models import Article, ArticleVersion, SyncStatus, VersionSource
from articlesync.db.repositories import (
    ArticleRepository,
    SqlArticleRepository,
    SqlVersionRepository,
    VersionRepository,
)
from articlesync.sync.clock import Clock, utcnow
from articlesync.sync.conflict import ConflictCheckResult, ConflictDetector, ConflictResolution
from articlesync.sync.locks import KeyedLock
from articlesync.sync.status import SyncStatusTracker
from articlesync.sync.versions import VersionStore


class ArticleSyncService:
    """Facade over the sync components sharing one lock registry.

    Args:
        articles:       Article storage.
        versions:       ArticleVersion storage.
        clock:          Timestamp source for snapshots and conflict detection.
        hash_algorithm: Fingerprint algorithm; None uses the configured default.
    """

    def __init__(
        self,
        articles: ArticleRepository,
        versions: VersionRepository,
        clock: Clock = utcnow,
        hash_algorithm: str | None = None,
    ) -> None:
        self.locks = KeyedLock()
        self.version_store = VersionStore(
            versions, self.locks, clock=clock, hash_algorithm=hash_algorithm
        )
        self.status_tracker = SyncStatusTracker(articles, self.locks, hash_algorithm=hash_algorithm)
        self.conflict_detector = ConflictDetector(
            articles,
            self.version_store,
            self.locks,
            clock=clock,
            hash_algorithm=hash_algorithm,
        )

    @classmethod
    def from_session_factory(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        **kwargs,
    ) -> ArticleSyncService:
        """Build a service backed by the SQLAlchemy repositories."""
        return cls(
            SqlArticleRepository(session_factory),
            SqlVersionRepository(session_factory),
            **kwargs,
        )

    # Conflict detection / resolution

    async def check_conflict(self, article_id: int) -> ConflictCheckResult:
        return await self.conflict_detector.check_conflict(article_id)

    async def mark_conflict(
        self,
        article_id: int,
        remote_content: str,
        remote_title: str,
        remote_version: int | None,
    ) -> None:
        await self.conflict_detector.mark_conflict(
            article_id, remote_content, remote_title, remote_version
        )

    async def resolve_conflict(
        self, article_id: int, resolution: ConflictResolution | str
    ) -> Article:
        return await self.conflict_detector.resolve_conflict(article_id, resolution)

    # Status tracking

    async def update_sync_status(
        self, article_id: int, status: SyncStatus | str, error: str | None = None
    ) -> None:
        await self.status_tracker.update_sync_status(article_id, status, error)

    async def increment_version(self, article_id: int, device_id: str | None = None) -> int:
        return await self.status_tracker.increment_version(article_id, device_id)

    async def update_content_hash(self, article_id: int, content: str) -> str:
        return await self.status_tracker.update_content_hash(article_id, content)

    # Version history

    async def save_version(
        self,
        article: Article,
        source: VersionSource | str,
        content: str | None = None,
        title: str | None = None,
        device_id: str | None = None,
    ) -> ArticleVersion:
        return await self.version_store.save_version(article, source, content, title, device_id)

    async def get_version_history(
        self, article_id: int, limit: int | None = None
    ) -> list[ArticleVersion]:
        return await self.version_store.get_version_history(article_id, limit)

    async def clean_old_versions(self, article_id: int, keep_count: int | None = None) -> int:
        return await self.version_store.clean_old_versions(article_id, keep_count)
