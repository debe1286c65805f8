import asyncio

import pytest

from articlesync.db.models import VersionSource
from articlesync.sync.hashing import compute_content_hash


@pytest.mark.asyncio
async def test_save_version_defaults_to_article_content(service, make_article):
    article = await make_article(title="Draft", content="Hello", local_version=3)

    version = await service.save_version(article, VersionSource.LOCAL)

    assert version.id is not None
    assert version.article_id == article.id
    assert version.version == 3
    assert version.title == "Draft"
    assert version.content == "Hello"
    assert version.content_hash == compute_content_hash("Hello")
    assert version.source == VersionSource.LOCAL


@pytest.mark.asyncio
async def test_save_version_with_explicit_content_and_title(service, make_article):
    article = await make_article(content="Local")

    version = await service.save_version(
        article, "conflict_remote", content="Remote", title="Remote Title", device_id="laptop"
    )

    assert version.content == "Remote"
    assert version.title == "Remote Title"
    assert version.content_hash == compute_content_hash("Remote")
    assert version.source == VersionSource.CONFLICT_REMOTE
    assert version.device_id == "laptop"


@pytest.mark.asyncio
async def test_save_version_keeps_empty_override(service, make_article):
    article = await make_article(content="Local")

    version = await service.save_version(article, VersionSource.REMOTE, content="")

    assert version.content == ""


@pytest.mark.asyncio
async def test_save_version_does_not_bump_article_version(service, make_article, load_article):
    article = await make_article(local_version=2)

    await service.save_version(article, VersionSource.LOCAL)

    assert (await load_article(article.id)).local_version == 2


@pytest.mark.asyncio
async def test_history_is_newest_first_and_limited(service, make_article):
    article = await make_article()
    for i in range(5):
        await service.save_version(article, VersionSource.LOCAL, content=f"rev {i}")

    history = await service.get_version_history(article.id, limit=3)

    assert [v.content for v in history] == ["rev 4", "rev 3", "rev 2"]


@pytest.mark.asyncio
async def test_history_is_scoped_to_article(service, make_article):
    first = await make_article(content="first")
    second = await make_article(content="second")
    await service.save_version(first, VersionSource.LOCAL)
    await service.save_version(second, VersionSource.LOCAL)

    history = await service.get_version_history(first.id)

    assert [v.content for v in history] == ["first"]


@pytest.mark.asyncio
async def test_clean_old_versions_removes_oldest_beyond_bound(service, make_article):
    article = await make_article()
    for i in range(25):
        await service.save_version(article, VersionSource.LOCAL, content=f"rev {i}")

    removed = await service.clean_old_versions(article.id, keep_count=20)

    assert removed == 5
    remaining = await service.get_version_history(article.id, limit=100)
    assert len(remaining) == 20
    assert {v.content for v in remaining} == {f"rev {i}" for i in range(5, 25)}


@pytest.mark.asyncio
async def test_clean_old_versions_within_bound_is_noop(service, make_article):
    article = await make_article()
    for i in range(15):
        await service.save_version(article, VersionSource.LOCAL, content=f"rev {i}")

    assert await service.clean_old_versions(article.id, keep_count=20) == 0
    assert len(await service.get_version_history(article.id, limit=100)) == 15


@pytest.mark.asyncio
async def test_clean_old_versions_uses_configured_default(service, make_article, monkeypatch):
    from articlesync.sync import versions

    monkeypatch.setattr(versions.settings, "version_keep_count", 2)
    article = await make_article()
    for i in range(4):
        await service.save_version(article, VersionSource.LOCAL, content=f"rev {i}")

    assert await service.clean_old_versions(article.id) == 2


@pytest.mark.asyncio
async def test_negative_bounds_rejected(service, make_article):
    article = await make_article()
    with pytest.raises(ValueError):
        await service.clean_old_versions(article.id, keep_count=-1)
    with pytest.raises(ValueError):
        await service.get_version_history(article.id, limit=-1)


@pytest.mark.asyncio
async def test_concurrent_prunes_remove_each_version_once(service, make_article):
    article = await make_article()
    for i in range(12):
        await service.save_version(article, VersionSource.LOCAL, content=f"rev {i}")

    removed = await asyncio.gather(
        service.clean_old_versions(article.id, keep_count=5),
        service.clean_old_versions(article.id, keep_count=5),
    )

    assert sorted(removed) == [0, 7]
    remaining = await service.get_version_history(article.id, limit=100)
    assert [v.content for v in remaining] == [f"rev {i}" for i in range(11, 6, -1)]


@pytest.mark.asyncio
async def test_prune_waits_for_article_lock(service, make_article):
    article = await make_article()
    for i in range(3):
        await service.save_version(article, VersionSource.LOCAL, content=f"rev {i}")

    async with service.locks(article.id):
        prune = asyncio.create_task(service.clean_old_versions(article.id, keep_count=1))
        await asyncio.sleep(0.01)
        assert not prune.done()
        assert len(await service.get_version_history(article.id)) == 3

    assert await prune == 2
