"""Append-only version history for articles.

Every snapshot records the article's local_version at capture time, the
title/content captured, a fresh fingerprint of that content, and a
provenance tag (VersionSource).  Snapshots are never edited; the only way
they leave the store is clean_old_versions(), which prunes from the oldest
end so each article keeps a bounded history.
"""

from __future__ import annotations

import logging

from articlesync.config import settings
from articlesync.db.models import Article, ArticleVersion, VersionSource
from articlesync.db.repositories import VersionRepository
from articlesync.sync.clock import Clock, utcnow
from articlesync.sync.hashing import compute_content_hash
from articlesync.sync.locks import KeyedLock

logger = logging.getLogger(__name__)


class VersionStore:
    """Archive of ArticleVersion snapshots with bounded retention.

    Args:
        versions:       Storage for ArticleVersion rows.
        locks:          Per-article lock registry shared with the other sync
                        components; pruning runs under it.
        clock:          Source of created_at timestamps.
        hash_algorithm: Fingerprint algorithm; None uses the configured default.
    """

    def __init__(
        self,
        versions: VersionRepository,
        locks: KeyedLock | None = None,
        clock: Clock = utcnow,
        hash_algorithm: str | None = None,
    ) -> None:
        self._versions = versions
        self._locks = locks if locks is not None else KeyedLock()
        self._clock = clock
        self._hash_algorithm = hash_algorithm

    def build_version(
        self,
        article: Article,
        source: VersionSource | str,
        content: str | None = None,
        title: str | None = None,
        device_id: str | None = None,
    ) -> ArticleVersion:
        """Return an unsaved snapshot of *article* at its current local_version.

        Args:
            article:   The article being snapshotted.
            source:    Why the snapshot is taken (local, remote, conflict_remote).
            content:   Text to archive; defaults to the article's own content.
            title:     Title to archive; defaults to the article's own title.
            device_id: Optional origin of the captured content.
        """
        snapshot_content = article.content if content is None else content
        return ArticleVersion(
            article_id=article.id,
            version=article.local_version,
            title=article.title if title is None else title,
            content=snapshot_content,
            content_hash=compute_content_hash(snapshot_content, self._hash_algorithm),
            source=VersionSource(source),
            device_id=device_id,
            created_at=self._clock(),
        )

    async def save_version(
        self,
        article: Article,
        source: VersionSource | str,
        content: str | None = None,
        title: str | None = None,
        device_id: str | None = None,
    ) -> ArticleVersion:
        """Append one snapshot of *article*; arguments as for build_version().

        Returns:
            The persisted ArticleVersion.
        """
        saved = await self._versions.add(
            self.build_version(article, source, content, title, device_id)
        )
        logger.debug(
            "Saved %s snapshot of article %s at v%d (version id=%s)",
            saved.source.value,
            article.id,
            article.local_version,
            saved.id,
        )
        return saved

    async def get_version_history(
        self, article_id: int, limit: int | None = None
    ) -> list[ArticleVersion]:
        """Return up to *limit* snapshots for an article, most recent first."""
        if limit is None:
            limit = settings.version_history_limit
        if limit < 0:
            raise ValueError("limit must be non-negative")
        return await self._versions.list_newest_first(article_id, limit=limit)

    async def clean_old_versions(self, article_id: int, keep_count: int | None = None) -> int:
        """Delete every snapshot beyond the newest *keep_count*.

        Returns:
            Number of snapshots removed (0 when already within bound).
        """
        if keep_count is None:
            keep_count = settings.version_keep_count
        if keep_count < 0:
            raise ValueError("keep_count must be non-negative")

        async with self._locks(article_id):
            stale = await self._versions.list_newest_first(article_id, offset=keep_count)
            if not stale:
                return 0
            removed = await self._versions.delete([v.id for v in stale])

        logger.info(
            "Pruned %d old versions of article %s (kept newest %d)",
            removed,
            article_id,
            keep_count,
        )
        return removed
