"""Local/remote divergence detection and whole-document resolution.

The external sync orchestrator calls mark_conflict() when it finds that the
remote copy disagrees with what was last pushed.  The remote text is archived
as a ``conflict_remote`` snapshot and parked on the article until a caller
picks a side with resolve_conflict():

  local   — keep local content, drop the remote snapshot, go back to
            ``pending`` with local_version + 1 so the next push is strictly
            newer than the rejected remote state.
  remote  — archive the local content as a ``local`` snapshot, adopt the
            remote content, go to ``synced`` with local_version aligned to
            the remote counter.

Only one remote snapshot is pending at a time: a second mark_conflict()
before resolution replaces the first (the latest known remote wins).
"""

from __future__ import annotations

import datetime
import enum
import logging
from dataclasses import dataclass

from articlesync.db.models import Article, SyncStatus, VersionSource
from articlesync.db.repositories import ArticleRepository
from articlesync.errors import ArticleNotFoundError, MissingRemoteContentError
from articlesync.sync.clock import Clock, utcnow
from articlesync.sync.hashing import compute_content_hash
from articlesync.sync.locks import KeyedLock
from articlesync.sync.versions import VersionStore

logger = logging.getLogger(__name__)


class ConflictResolution(str, enum.Enum):
    """Which side wins a whole-document conflict."""

    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True)
class ConflictCheckResult:
    """Read-only projection of an article's conflict state."""

    has_conflict: bool
    local_version: int
    remote_version: int | None
    remote_content: str | None
    remote_title: str | None
    remote_detected_at: datetime.datetime | None
    sync_status: SyncStatus


# Fields cleared together whenever a conflict is resolved.
_CLEARED_CONFLICT_FIELDS = {
    "has_conflict": False,
    "conflict_remote_content": None,
    "conflict_remote_title": None,
    "conflict_detected_at": None,
}


class ConflictDetector:
    """Records divergence and performs the two resolution paths."""

    def __init__(
        self,
        articles: ArticleRepository,
        version_store: VersionStore,
        locks: KeyedLock,
        clock: Clock = utcnow,
        hash_algorithm: str | None = None,
    ) -> None:
        self._articles = articles
        self._version_store = version_store
        self._locks = locks
        self._clock = clock
        self._hash_algorithm = hash_algorithm

    async def _load(self, article_id: int) -> Article:
        article = await self._articles.get(article_id)
        if article is None:
            raise ArticleNotFoundError(article_id)
        return article

    # ------------------------------------------------------------------
    # Detection
    # ------------------------------------------------------------------

    async def check_conflict(self, article_id: int) -> ConflictCheckResult:
        """Return the article's current conflict fields (no locking)."""
        article = await self._load(article_id)
        return ConflictCheckResult(
            has_conflict=article.has_conflict,
            local_version=article.local_version,
            remote_version=article.remote_version,
            remote_content=article.conflict_remote_content,
            remote_title=article.conflict_remote_title,
            remote_detected_at=article.conflict_detected_at,
            sync_status=article.sync_status,
        )

    async def mark_conflict(
        self,
        article_id: int,
        remote_content: str,
        remote_title: str,
        remote_version: int | None,
    ) -> None:
        """Park a divergent remote copy on the article and flag the conflict.

        Archives the remote text as a ``conflict_remote`` snapshot at the
        article's current local_version and stores it as the pending
        snapshot, both in one transaction.  An already-pending snapshot is
        overwritten.

        Raises:
            ArticleNotFoundError: If the article does not exist.
        """
        async with self._locks(article_id):
            article = await self._load(article_id)
            if article.has_conflict:
                logger.info(
                    "Article %s already in conflict, replacing pending remote snapshot "
                    "(remote v%s -> v%s)",
                    article_id,
                    article.remote_version,
                    remote_version,
                )

            snapshot = self._version_store.build_version(
                article,
                VersionSource.CONFLICT_REMOTE,
                content=remote_content,
                title=remote_title,
            )
            updated = await self._articles.update_and_archive(
                article_id,
                {
                    "has_conflict": True,
                    "conflict_remote_content": remote_content,
                    "conflict_remote_title": remote_title,
                    "conflict_detected_at": self._clock(),
                    "remote_version": remote_version,
                    "remote_content_hash": compute_content_hash(
                        remote_content, self._hash_algorithm
                    ),
                    "sync_status": SyncStatus.CONFLICT,
                },
                snapshot,
            )
            if not updated:
                raise ArticleNotFoundError(article_id)

        logger.info(
            "Conflict marked on article %s (local v%d, remote v%s)",
            article_id,
            article.local_version,
            remote_version,
        )

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def resolve_conflict(
        self, article_id: int, resolution: ConflictResolution | str
    ) -> Article:
        """Resolve a pending conflict by keeping the local or the remote side.

        A call on an article that is not in conflict is a no-op and returns
        the article unchanged.

        Returns:
            The reloaded article.

        Raises:
            ArticleNotFoundError: If the article does not exist, or vanished
                between the update and the reload.
            MissingRemoteContentError: If remote resolution is requested but no
                remote snapshot is stored.
        """
        resolution = ConflictResolution(resolution)

        async with self._locks(article_id):
            article = await self._load(article_id)

            if not article.has_conflict:
                logger.debug("Article %s has no pending conflict, nothing to resolve", article_id)
                return article

            if resolution is ConflictResolution.LOCAL:
                updated = await self._articles.update(article_id, self._keep_local(article))
            else:
                if article.conflict_remote_content is None:
                    raise MissingRemoteContentError(article_id)
                # The outgoing local text is archived atomically with the switch
                updated = await self._articles.update_and_archive(
                    article_id,
                    self._adopt_remote(article),
                    self._version_store.build_version(article, VersionSource.LOCAL),
                )
            if not updated:
                raise ArticleNotFoundError(article_id)

            reloaded = await self._articles.get(article_id)
            if reloaded is None:
                raise ArticleNotFoundError(article_id)

        logger.info(
            "Conflict on article %s resolved with %s content (v%d -> v%d, status=%s)",
            article_id,
            resolution.value,
            article.local_version,
            reloaded.local_version,
            reloaded.sync_status.value,
        )
        return reloaded

    def _keep_local(self, article: Article) -> dict:
        return {
            **_CLEARED_CONFLICT_FIELDS,
            "sync_status": SyncStatus.PENDING,
            "local_version": article.local_version + 1,
        }

    def _adopt_remote(self, article: Article) -> dict:
        remote_content = article.conflict_remote_content
        # local_version never decreases, even against a stale remote counter
        if article.remote_version is not None and article.remote_version >= article.local_version:
            new_version = article.remote_version
        else:
            new_version = article.local_version + 1

        values = {
            **_CLEARED_CONFLICT_FIELDS,
            "content": remote_content,
            "content_hash": compute_content_hash(remote_content, self._hash_algorithm),
            "sync_status": SyncStatus.SYNCED,
            "sync_error": None,
            "local_version": new_version,
        }
        if article.conflict_remote_title is not None:
            values["title"] = article.conflict_remote_title
        return values
