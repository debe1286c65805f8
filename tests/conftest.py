import datetime
from collections.abc import Callable

import pytest
import pytest_asyncio

from articlesync.db.models import Article, SyncStatus
from articlesync.db.session import build_engine, build_session_factory, create_schema
from articlesync.sync.hashing import compute_content_hash
from articlesync.sync.service import ArticleSyncService

EPOCH = datetime.datetime(2026, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)


class SteppingClock:
    """Deterministic clock that advances one second per call."""

    def __init__(self, start: datetime.datetime = EPOCH) -> None:
        self.now = start

    def __call__(self) -> datetime.datetime:
        current = self.now
        self.now += datetime.timedelta(seconds=1)
        return current


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'articlesync.db'}"


@pytest_asyncio.fixture
async def engine(database_url):
    engine = build_engine(database_url)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture
def service(session_factory, clock) -> ArticleSyncService:
    return ArticleSyncService.from_session_factory(session_factory, clock=clock)


@pytest.fixture
def make_article(session_factory) -> Callable:
    """Insert an article the way the surrounding application would."""

    async def _make(
        title: str = "Draft",
        content: str = "Hello",
        sync_status: SyncStatus = SyncStatus.SYNCED,
        **fields,
    ) -> Article:
        article = Article(
            title=title,
            content=content,
            content_hash=compute_content_hash(content),
            local_version=fields.pop("local_version", 1),
            has_conflict=fields.pop("has_conflict", False),
            sync_status=sync_status,
            **fields,
        )
        async with session_factory() as session:
            session.add(article)
            await session.commit()
            await session.refresh(article)
        return article

    return _make


@pytest.fixture
def load_article(session_factory) -> Callable:
    async def _load(article_id: int) -> Article | None:
        async with session_factory() as session:
            return await session.get(Article, article_id)

    return _load
