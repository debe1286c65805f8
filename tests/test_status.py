import pytest

from articlesync.db.models import Article, SyncStatus
from articlesync.errors import ArticleNotFoundError, InvalidSyncTransitionError
from articlesync.sync.hashing import compute_content_hash
from articlesync.sync.status import SYNC_TRANSITIONS, is_valid_transition


def test_every_status_has_transitions():
    assert set(SYNC_TRANSITIONS) == set(SyncStatus)


@pytest.mark.parametrize(
    ("current", "target", "expected"),
    [
        ("synced", "pending", True),
        ("pending", "syncing", True),
        ("syncing", "synced", True),
        ("syncing", "error", True),
        ("syncing", "conflict", True),
        ("conflict", "pending", True),
        ("conflict", "synced", True),
        ("error", "syncing", True),
        ("synced", "synced", True),
        ("synced", "conflict", False),
        ("conflict", "syncing", False),
        ("error", "synced", False),
    ],
)
def test_is_valid_transition(current, target, expected):
    assert is_valid_transition(current, target) is expected


@pytest.mark.asyncio
async def test_local_edit_bumps_version_and_rehashes(service, make_article, load_article, session_factory):
    article = await make_article(content="Hello")
    assert article.local_version == 1

    # The editor saves new text, then records the edit.
    async with session_factory() as session:
        row = await session.get(Article, article.id)
        row.content = "Hello world"
        await session.commit()

    new_version = await service.increment_version(article.id, device_id="desktop-1")

    reloaded = await load_article(article.id)
    assert new_version == 2
    assert reloaded.local_version == 2
    assert reloaded.content_hash == compute_content_hash("Hello world")
    assert reloaded.content_hash != compute_content_hash("Hello")
    assert reloaded.last_modified_by == "desktop-1"


@pytest.mark.asyncio
async def test_increment_version_not_blocked_by_conflict(service, make_article, load_article):
    article = await make_article()
    await service.mark_conflict(article.id, "Remote", "Remote Title", 5)

    assert await service.increment_version(article.id) == 2
    assert (await load_article(article.id)).has_conflict is True


@pytest.mark.asyncio
async def test_increment_version_missing_article(service):
    with pytest.raises(ArticleNotFoundError):
        await service.increment_version(999)


@pytest.mark.asyncio
async def test_update_sync_status_stores_error(service, make_article, load_article):
    article = await make_article(sync_status=SyncStatus.SYNCING)

    await service.update_sync_status(article.id, SyncStatus.ERROR, "remote returned 502")

    reloaded = await load_article(article.id)
    assert reloaded.sync_status == SyncStatus.ERROR
    assert reloaded.sync_error == "remote returned 502"


@pytest.mark.asyncio
async def test_synced_clears_error_without_argument(service, make_article, load_article):
    article = await make_article(sync_status=SyncStatus.ERROR, sync_error="timeout")

    await service.update_sync_status(article.id, "syncing")
    assert (await load_article(article.id)).sync_error == "timeout"

    await service.update_sync_status(article.id, "synced")
    reloaded = await load_article(article.id)
    assert reloaded.sync_status == SyncStatus.SYNCED
    assert reloaded.sync_error is None


@pytest.mark.asyncio
async def test_unusual_transition_is_applied_and_logged(service, make_article, load_article, caplog):
    article = await make_article(sync_status=SyncStatus.ERROR)

    with caplog.at_level("WARNING", logger="articlesync.sync.status"):
        await service.update_sync_status(article.id, SyncStatus.SYNCED)

    assert (await load_article(article.id)).sync_status == SyncStatus.SYNCED
    assert "unusual sync transition" in caplog.text


@pytest.mark.asyncio
async def test_cannot_enter_conflict_through_status_update(service, make_article, load_article):
    article = await make_article(sync_status=SyncStatus.SYNCING)

    with pytest.raises(InvalidSyncTransitionError):
        await service.update_sync_status(article.id, SyncStatus.CONFLICT)
    assert (await load_article(article.id)).sync_status == SyncStatus.SYNCING


@pytest.mark.asyncio
async def test_cannot_leave_conflict_through_status_update(service, make_article, load_article):
    article = await make_article()
    await service.mark_conflict(article.id, "Remote", "Remote Title", 3)

    with pytest.raises(InvalidSyncTransitionError):
        await service.update_sync_status(article.id, SyncStatus.SYNCED)

    reloaded = await load_article(article.id)
    assert reloaded.sync_status == SyncStatus.CONFLICT
    assert reloaded.has_conflict is True


@pytest.mark.asyncio
async def test_update_sync_status_missing_article(service):
    with pytest.raises(ArticleNotFoundError):
        await service.update_sync_status(404, SyncStatus.PENDING)


@pytest.mark.asyncio
async def test_update_content_hash(service, make_article, load_article):
    article = await make_article(content="Hello")

    stored = await service.update_content_hash(article.id, "Edited in place")

    assert stored == compute_content_hash("Edited in place")
    assert (await load_article(article.id)).content_hash == stored
