"""Initial schema — articles and article version history.

Revision ID: 001
Revises:
Create Date: 2026-10-18

Creates:
- syncstatus        : enum synced | pending | syncing | conflict | error
- versionsource     : enum local | remote | conflict_remote
- articles          : documents with sync metadata (versions, hashes,
                      pending conflict snapshot, lifecycle status)
- article_versions  : append-only snapshots, cascade-deleted with the article

Indexes:
- ix_article_versions_article_id_version : history lookups per article
- ix_article_versions_article_created    : newest-first range scans used by
                                           get_version_history / clean_old_versions
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers used by Alembic
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_SYNC_STATUS = sa.Enum(
    "synced", "pending", "syncing", "conflict", "error", name="syncstatus"
)
_VERSION_SOURCE = sa.Enum("local", "remote", "conflict_remote", name="versionsource")


def upgrade() -> None:
    # 1. articles: one row per document
    op.create_table(
        "articles",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("content", sa.Text, nullable=False, server_default=""),
        sa.Column("content_hash", sa.Text, nullable=True),
        sa.Column("remote_content_hash", sa.Text, nullable=True),
        sa.Column("local_version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("remote_version", sa.Integer, nullable=True),
        sa.Column("last_modified_by", sa.Text, nullable=True),
        sa.Column("has_conflict", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("conflict_remote_content", sa.Text, nullable=True),
        sa.Column("conflict_remote_title", sa.Text, nullable=True),
        sa.Column("conflict_detected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sync_status", _SYNC_STATUS, nullable=False, server_default="synced"),
        sa.Column("sync_error", sa.Text, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    # 2. article_versions: append-only snapshot archive
    op.create_table(
        "article_versions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "article_id",
            sa.Integer,
            sa.ForeignKey("articles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("version", sa.Integer, nullable=False),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("content_hash", sa.Text, nullable=True),
        sa.Column("source", _VERSION_SOURCE, nullable=False),
        sa.Column("device_id", sa.Text, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    op.create_index(
        "ix_article_versions_article_id_version",
        "article_versions",
        ["article_id", "version"],
    )
    op.create_index(
        "ix_article_versions_article_created",
        "article_versions",
        ["article_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_article_versions_article_created", table_name="article_versions")
    op.drop_index("ix_article_versions_article_id_version", table_name="article_versions")
    op.drop_table("article_versions")
    op.drop_table("articles")
    _VERSION_SOURCE.drop(op.get_bind(), checkfirst=True)
    _SYNC_STATUS.drop(op.get_bind(), checkfirst=True)
