"""Error taxonomy for ArticleSync.

Every error raised by the sync components derives from ArticleSyncError so
callers (the REST adapter, the CLI, an external sync orchestrator) can catch
the whole family in one place.  Persistence failures from SQLAlchemy are not
wrapped: they propagate unchanged.
"""

from __future__ import annotations

__all__ = [
    "ArticleSyncError",
    "ArticleNotFoundError",
    "MissingRemoteContentError",
    "InvalidSyncTransitionError",
]


class ArticleSyncError(Exception):
    """Base class for all ArticleSync errors."""


class ArticleNotFoundError(ArticleSyncError, LookupError):
    """The article id does not resolve to a stored article."""

    def __init__(self, article_id: int) -> None:
        self.article_id = article_id
        super().__init__(f"Article {article_id} not found")


class MissingRemoteContentError(ArticleSyncError):
    """Remote resolution was requested but no remote snapshot is stored."""

    def __init__(self, article_id: int) -> None:
        self.article_id = article_id
        super().__init__(f"Article {article_id} has no stored remote content to adopt")


class InvalidSyncTransitionError(ArticleSyncError):
    """A status change would break the conflict invariant.

    Only mark_conflict may enter the conflict state and only resolve_conflict
    may leave it.
    """

    def __init__(self, article_id: int, current: str, target: str) -> None:
        self.article_id = article_id
        self.current = current
        self.target = target
        super().__init__(
            f"Article {article_id}: cannot change sync status from {current!r} to {target!r}"
        )
