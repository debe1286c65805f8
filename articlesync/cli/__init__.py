"""ArticleSync CLI — inspect and repair article sync state.

Entry point registered in pyproject.toml:
    articlesync = "articlesync.cli:app"

Commands:
    articlesync status ID     — sync status and pending conflict
    articlesync history ID    — archived versions, newest first
    articlesync resolve ID    — resolve a conflict (--use local|remote)
    articlesync prune ID      — drop old versions (--keep N)
    articlesync init-db       — create tables on a local database
"""

import logging

import typer

from articlesync.cli.commands import history, init_db, prune, resolve, status
from articlesync.config import settings

app = typer.Typer(
    name="articlesync",
    help="ArticleSync CLI — inspect and repair article sync state",
    no_args_is_help=True,
)


@app.callback()
def main() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


app.command()(status)
app.command()(history)
app.command()(resolve)
app.command()(prune)
app.command("init-db")(init_db)
