"""Sync lifecycle tracking per article.

Lifecycle (SYNC_TRANSITIONS):

    synced  --local edit-------------> pending
    pending --sync attempt starts----> syncing
    syncing --push succeeds----------> synced
    syncing --push fails-------------> error
    syncing --remote divergence------> conflict   (mark_conflict only)
    conflict --resolve local---------> pending    (resolve_conflict only)
    conflict --resolve remote--------> synced     (resolve_conflict only)
    error   --retry------------------> syncing

update_sync_status() refuses to enter or leave ``conflict`` because that
would separate sync_status from has_conflict/conflict_remote_content.  Other
off-table moves are applied but logged, since the external orchestrator owns
the flow between the remaining states.
"""

from __future__ import annotations

import logging

from articlesync.db.models import Article, SyncStatus
from articlesync.db.repositories import ArticleRepository
from articlesync.errors import ArticleNotFoundError, InvalidSyncTransitionError
from articlesync.sync.hashing import compute_content_hash
from articlesync.sync.locks import KeyedLock

logger = logging.getLogger(__name__)

SYNC_TRANSITIONS: dict[SyncStatus, frozenset[SyncStatus]] = {
    SyncStatus.SYNCED: frozenset({SyncStatus.PENDING}),
    SyncStatus.PENDING: frozenset({SyncStatus.SYNCING}),
    SyncStatus.SYNCING: frozenset({SyncStatus.SYNCED, SyncStatus.ERROR, SyncStatus.CONFLICT}),
    SyncStatus.CONFLICT: frozenset({SyncStatus.PENDING, SyncStatus.SYNCED}),
    SyncStatus.ERROR: frozenset({SyncStatus.SYNCING}),
}


def is_valid_transition(current: SyncStatus | str, target: SyncStatus | str) -> bool:
    """Return True if *current* -> *target* is an edge of the sync lifecycle.

    Staying in the same state counts as valid.
    """
    current, target = SyncStatus(current), SyncStatus(target)
    return current == target or target in SYNC_TRANSITIONS[current]


class SyncStatusTracker:
    """Status, error slot, version counter and hash maintenance for articles."""

    def __init__(
        self,
        articles: ArticleRepository,
        locks: KeyedLock,
        hash_algorithm: str | None = None,
    ) -> None:
        self._articles = articles
        self._locks = locks
        self._hash_algorithm = hash_algorithm

    async def _load(self, article_id: int) -> Article:
        article = await self._articles.get(article_id)
        if article is None:
            raise ArticleNotFoundError(article_id)
        return article

    async def update_sync_status(
        self,
        article_id: int,
        status: SyncStatus | str,
        error: str | None = None,
    ) -> None:
        """Set the article's sync status and error slot.

        A supplied *error* is stored.  Moving to ``synced`` clears the error
        slot even when no error argument is given.

        Raises:
            ArticleNotFoundError: If the article does not exist.
            InvalidSyncTransitionError: If the change would enter or leave
                ``conflict`` outside mark_conflict/resolve_conflict.
        """
        status = SyncStatus(status)
        async with self._locks(article_id):
            article = await self._load(article_id)
            current = article.sync_status

            entering_conflict = status == SyncStatus.CONFLICT and not article.has_conflict
            leaving_conflict = article.has_conflict and status != SyncStatus.CONFLICT
            if entering_conflict or leaving_conflict:
                raise InvalidSyncTransitionError(article_id, current.value, status.value)

            if not is_valid_transition(current, status):
                logger.warning(
                    "Article %s: unusual sync transition %s -> %s",
                    article_id,
                    current.value,
                    status.value,
                )

            values: dict = {"sync_status": status}
            if error:
                values["sync_error"] = error
            elif status == SyncStatus.SYNCED:
                values["sync_error"] = None

            if not await self._articles.update(article_id, values):
                raise ArticleNotFoundError(article_id)

        logger.debug("Article %s: sync status %s -> %s", article_id, current.value, status.value)

    async def increment_version(self, article_id: int, device_id: str | None = None) -> int:
        """Record a local edit: bump local_version and refresh content_hash.

        Not gated on has_conflict; blocking edits during a conflict is the
        caller's policy.

        Returns:
            The new local_version.
        """
        async with self._locks(article_id):
            article = await self._load(article_id)
            new_version = article.local_version + 1
            updated = await self._articles.update(
                article_id,
                {
                    "local_version": new_version,
                    "last_modified_by": device_id,
                    "content_hash": compute_content_hash(article.content, self._hash_algorithm),
                },
            )
            if not updated:
                raise ArticleNotFoundError(article_id)

        logger.debug("Article %s: local version -> %d (device=%s)", article_id, new_version, device_id)
        return new_version

    async def update_content_hash(self, article_id: int, content: str) -> str:
        """Store the fingerprint of *content* as the article's content_hash.

        Returns:
            The stored fingerprint.
        """
        content_hash = compute_content_hash(content, self._hash_algorithm)
        async with self._locks(article_id):
            if not await self._articles.update(article_id, {"content_hash": content_hash}):
                raise ArticleNotFoundError(article_id)
        return content_hash
