"""Shared fixtures: a file-backed SQLite database per test and an API client."""

from datetime import datetime, timezone
from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

from reader.app.db.async_session import get_db, make_session_maker
from reader.app.db.dependencies import get_session_maker
from reader.app.db.models import Article, Base, Feed


def _sqlite_url_from_absolute_path(path: str) -> str:
    # SQLAlchemy expects 4 slashes for absolute paths. The path already starts
    # with '/', so strip it when appending after '////'.
    return f"sqlite+aiosqlite:////{path.lstrip('/')}"


def utc(year: int, month: int, day: int, hour: int = 12, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(_sqlite_url_from_absolute_path(str(tmp_path / "reader_test.db")))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return make_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


async def _add_feed(session_maker, **fields) -> int:
    fields.setdefault("title", "Example Feed")
    async with session_maker() as session:
        feed = Feed(**fields)
        session.add(feed)
        await session.commit()
        return feed.id


async def _add_article(
    session_maker,
    title: str,
    published_at: Optional[datetime] = None,
    feed_id: Optional[int] = None,
    **fields,
) -> int:
    async with session_maker() as session:
        article = Article(
            title=title,
            feed_id=feed_id,
            published_at=published_at or utc(2024, 2, 6),
            **fields,
        )
        session.add(article)
        await session.commit()
        return article.id


@pytest.fixture
def add_feed(session_maker):
    """Insert a feed: `await add_feed(title=..., category=...)` returns its ID."""
    async def add(**fields) -> int:
        return await _add_feed(session_maker, **fields)
    return add


@pytest.fixture
def add_article(session_maker):
    """Insert an article: `await add_article("Title", published_at, feed_id, ...)`."""
    async def add(
        title: str,
        published_at: Optional[datetime] = None,
        feed_id: Optional[int] = None,
        **fields,
    ) -> int:
        return await _add_article(session_maker, title, published_at, feed_id, **fields)
    return add


@pytest.fixture
def app(session_maker):
    """Application wired to the per-test database."""
    from reader.app.main import create_app

    app = create_app()

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_maker] = lambda: session_maker
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app):
    """Provide HTTP test client."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
