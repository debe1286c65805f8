"""SQLAlchemy ORM models for ArticleSync.

Two tables:
- articles          : one row per document, carrying the sync metadata
                      (versions, hashes, conflict snapshot, lifecycle status)
- article_versions  : append-only snapshots of article content, tagged with
                      the reason they were captured

Enum columns store the lowercase ``.value`` of the Python enum so rows written
by other clients (which use the plain strings) read back cleanly.
"""

from __future__ import annotations

import datetime
import enum

import sqlalchemy as sa
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base shared by all ArticleSync models."""


class SyncStatus(str, enum.Enum):
    """Where an article stands in outbound synchronization."""

    SYNCED = "synced"
    PENDING = "pending"
    SYNCING = "syncing"
    CONFLICT = "conflict"
    ERROR = "error"


class VersionSource(str, enum.Enum):
    """Provenance tag on an ArticleVersion snapshot.

    REMOTE is reserved for snapshots pulled from the remote side outside of a
    conflict; the conflict flow itself only writes LOCAL and CONFLICT_REMOTE.
    """

    LOCAL = "local"
    REMOTE = "remote"
    CONFLICT_REMOTE = "conflict_remote"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class Article(Base):
    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(sa.Text, nullable=False)
    content: Mapped[str] = mapped_column(sa.Text, nullable=False, default="")

    # Change detection
    content_hash: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    remote_content_hash: Mapped[str | None] = mapped_column(sa.Text, nullable=True)

    # Version counters; local_version never decreases
    local_version: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=1)
    remote_version: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)
    last_modified_by: Mapped[str | None] = mapped_column(sa.Text, nullable=True)

    # Pending conflict snapshot, populated iff has_conflict
    has_conflict: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    conflict_remote_content: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    conflict_remote_title: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    conflict_detected_at: Mapped[datetime.datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )

    sync_status: Mapped[SyncStatus] = mapped_column(
        sa.Enum(SyncStatus, name="syncstatus", values_callable=_enum_values),
        nullable=False,
        default=SyncStatus.SYNCED,
    )
    sync_error: Mapped[str | None] = mapped_column(sa.Text, nullable=True)

    created_at: Mapped[datetime.datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
        onupdate=sa.func.now(),
    )

    def __repr__(self) -> str:
        return (
            f"<Article id={self.id} v{self.local_version} "
            f"status={self.sync_status.value if self.sync_status else None}>"
        )


class ArticleVersion(Base):
    __tablename__ = "article_versions"
    __table_args__ = (
        sa.Index("ix_article_versions_article_id_version", "article_id", "version"),
        sa.Index("ix_article_versions_article_created", "article_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    article_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("articles.id", ondelete="CASCADE"), nullable=False
    )
    # The article's local_version at capture time; snapshots never bump it.
    version: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    title: Mapped[str] = mapped_column(sa.Text, nullable=False)
    content: Mapped[str] = mapped_column(sa.Text, nullable=False)
    content_hash: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    source: Mapped[VersionSource] = mapped_column(
        sa.Enum(VersionSource, name="versionsource", values_callable=_enum_values),
        nullable=False,
    )
    device_id: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    created_at: Mapped[datetime.datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )

    def __repr__(self) -> str:
        return f"<ArticleVersion id={self.id} article={self.article_id} v{self.version} {self.source.value}>"
