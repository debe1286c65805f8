"""Operator commands for inspecting and repairing article sync state.

Usage:
    articlesync status 42
    articlesync history 42 --limit 5
    articlesync resolve 42 --use remote
    articlesync prune 42 --keep 20
    articlesync init-db

Every command accepts --database-url (or ARTICLESYNC_DATABASE_URL).
"""

from __future__ import annotations

from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from articlesync.cli.client import init_schema, run_with_service
from articlesync.config import settings
from articlesync.errors import ArticleSyncError
from articlesync.sync.conflict import ConflictResolution

# Module-level console used by all commands
console = Console()

_DATABASE_URL_OPTION = typer.Option(
    None,
    "--database-url",
    envvar="ARTICLESYNC_DATABASE_URL",
    help="SQLAlchemy async database URL (defaults to settings).",
)

_STATUS_COLORS = {
    "synced": "green",
    "pending": "yellow",
    "syncing": "blue",
    "conflict": "red",
    "error": "red",
}


def _fail(exc: ArticleSyncError) -> NoReturn:
    console.print(f"[red]{exc}[/red]")
    raise typer.Exit(code=1)


def status(
    article_id: int = typer.Argument(..., help="Article id."),
    database_url: Optional[str] = _DATABASE_URL_OPTION,
) -> None:
    """Show an article's sync status and any pending conflict."""
    try:
        result = run_with_service(lambda s: s.check_conflict(article_id), database_url)
    except ArticleSyncError as exc:
        _fail(exc)

    color = _STATUS_COLORS.get(result.sync_status.value, "white")
    body = (
        f"Status: [{color}]{result.sync_status.value}[/{color}]\n"
        f"Local version:  {result.local_version}\n"
        f"Remote version: {result.remote_version if result.remote_version is not None else '—'}"
    )
    if result.has_conflict:
        detected = result.remote_detected_at.strftime("%Y-%m-%d %H:%M") if result.remote_detected_at else "?"
        preview = (result.remote_content or "")[:200]
        body += (
            f"\n\n[bold red]Conflict pending[/bold red] (detected {detected})\n"
            f"Remote title: {result.remote_title or '—'}\n"
            f"[dim]{preview}[/dim]"
        )
    console.print(Panel(body, title=f"Article {article_id}", border_style=color))


def history(
    article_id: int = typer.Argument(..., help="Article id."),
    limit: int = typer.Option(
        settings.version_history_limit, "--limit", min=0, help="Number of snapshots to show."
    ),
    database_url: Optional[str] = _DATABASE_URL_OPTION,
) -> None:
    """List an article's archived versions, newest first."""
    versions = run_with_service(lambda s: s.get_version_history(article_id, limit), database_url)
    if not versions:
        console.print(f"[dim]No archived versions for article {article_id}.[/dim]")
        return

    table = Table(title=f"Version history — article {article_id}")
    table.add_column("ID", justify="right")
    table.add_column("Version", justify="right")
    table.add_column("Source")
    table.add_column("Title")
    table.add_column("Hash")
    table.add_column("Captured")
    for v in versions:
        table.add_row(
            str(v.id),
            str(v.version),
            v.source.value,
            v.title,
            v.content_hash or "",
            v.created_at.strftime("%Y-%m-%d %H:%M:%S"),
        )
    console.print(table)


def resolve(
    article_id: int = typer.Argument(..., help="Article id."),
    use: ConflictResolution = typer.Option(
        ..., "--use", help="Which side wins: local or remote."
    ),
    database_url: Optional[str] = _DATABASE_URL_OPTION,
) -> None:
    """Resolve a pending conflict by keeping the local or the remote content."""
    try:
        article = run_with_service(lambda s: s.resolve_conflict(article_id, use), database_url)
    except ArticleSyncError as exc:
        _fail(exc)

    console.print(
        f"[green]Article {article_id}: {article.sync_status.value}, "
        f"local version {article.local_version}.[/green]"
    )


def prune(
    article_id: int = typer.Argument(..., help="Article id."),
    keep: int = typer.Option(
        settings.version_keep_count, "--keep", min=0, help="Snapshots to retain."
    ),
    database_url: Optional[str] = _DATABASE_URL_OPTION,
) -> None:
    """Delete all but the newest --keep archived versions of an article."""
    removed = run_with_service(lambda s: s.clean_old_versions(article_id, keep), database_url)
    console.print(f"Removed {removed} old version(s) of article {article_id}.")


def init_db(database_url: Optional[str] = _DATABASE_URL_OPTION) -> None:
    """Create the sync tables directly (local/SQLite databases; use alembic otherwise)."""
    init_schema(database_url)
    console.print("[green]Schema created.[/green]")
