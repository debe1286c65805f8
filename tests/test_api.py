import httpx
import pytest
import pytest_asyncio

from articlesync.server.main import create_app


@pytest_asyncio.fixture
async def client(service):
    app = create_app(service)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_conflict_round_trip(client, make_article):
    article = await make_article(content="Local text", local_version=2)

    resp = await client.post(
        f"/api/v1/articles/{article.id}/conflict",
        json={"remote_content": "Remote text", "remote_title": "Remote", "remote_version": 7},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["has_conflict"] is True
    assert body["remote_version"] == 7
    assert body["sync_status"] == "conflict"

    resp = await client.get(f"/api/v1/articles/{article.id}/conflict")
    assert resp.json()["remote_content"] == "Remote text"

    resp = await client.post(
        f"/api/v1/articles/{article.id}/resolve", json={"resolution": "remote"}
    )
    assert resp.status_code == 200
    resolved = resp.json()
    assert resolved["content"] == "Remote text"
    assert resolved["title"] == "Remote"
    assert resolved["local_version"] == 7
    assert resolved["sync_status"] == "synced"


@pytest.mark.asyncio
async def test_unknown_article_returns_404(client):
    resp = await client.get("/api/v1/articles/999/conflict")
    assert resp.status_code == 404

    resp = await client.post("/api/v1/articles/999/resolve", json={"resolution": "local"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_invalid_resolution_returns_422(client, make_article):
    article = await make_article()
    resp = await client.post(
        f"/api/v1/articles/{article.id}/resolve", json={"resolution": "merge"}
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_missing_remote_content_returns_409(client, make_article):
    article = await make_article(has_conflict=True, sync_status="conflict")
    resp = await client.post(
        f"/api/v1/articles/{article.id}/resolve", json={"resolution": "remote"}
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_sync_status_update(client, make_article, load_article):
    article = await make_article(sync_status="syncing")

    resp = await client.put(
        f"/api/v1/articles/{article.id}/sync-status",
        json={"status": "error", "error": "upstream timeout"},
    )
    assert resp.status_code == 204

    reloaded = await load_article(article.id)
    assert reloaded.sync_status == "error"
    assert reloaded.sync_error == "upstream timeout"

    resp = await client.put(
        f"/api/v1/articles/{article.id}/sync-status", json={"status": "conflict"}
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_increment_and_history(client, make_article):
    article = await make_article()

    resp = await client.post(
        f"/api/v1/articles/{article.id}/versions/increment", json={"device_id": "phone"}
    )
    assert resp.json() == {"local_version": 2}

    await client.post(
        f"/api/v1/articles/{article.id}/conflict",
        json={"remote_content": "R1", "remote_title": "T", "remote_version": 3},
    )
    await client.post(
        f"/api/v1/articles/{article.id}/conflict",
        json={"remote_content": "R2", "remote_title": "T", "remote_version": 4},
    )

    resp = await client.get(f"/api/v1/articles/{article.id}/versions", params={"limit": 1})
    assert resp.status_code == 200
    [latest] = resp.json()
    assert latest["content"] == "R2"
    assert latest["source"] == "conflict_remote"

    resp = await client.delete(f"/api/v1/articles/{article.id}/versions", params={"keep": 1})
    assert resp.json() == {"removed": 1}


@pytest.mark.asyncio
async def test_negative_limit_rejected(client, make_article):
    article = await make_article()
    resp = await client.get(f"/api/v1/articles/{article.id}/versions", params={"limit": -1})
    assert resp.status_code == 422
