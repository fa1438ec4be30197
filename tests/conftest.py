"""Pytest configuration and shared fixtures for token store tests."""

import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# In-memory SQLite unless DATABASE_URL points at PostgreSQL; set before app imports so config uses it
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CLEANUP_INTERVAL_MINUTES", "0")

from oauth2_token_store.api.deps import get_token_store
from oauth2_token_store.config import settings
from oauth2_token_store.db.base import Base
from oauth2_token_store.db.session import build_engine
from oauth2_token_store.main import app
from oauth2_token_store.models import OAuth2Token
from oauth2_token_store.services.token_store import TokenStore

pytest_plugins = ["pytest_asyncio"]


async def _delete_all(engine) -> None:
    async with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            await conn.execute(table.delete())


@pytest_asyncio.fixture
async def session_maker():
    """Fresh engine per test with empty tables; yields the session maker the store is built on."""
    engine = build_engine(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await _delete_all(engine)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await _delete_all(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def store(session_maker):
    return TokenStore(session_maker, cleanup_batch_size=100)


@pytest_asyncio.fixture
async def client(store):
    """AsyncClient against the app with the token store bound to the test database."""
    app.dependency_overrides[get_token_store] = lambda: store
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def row_count(session_maker):
    """Async callable returning the number of rows in oauth2_tokens, valid or not."""

    async def _count() -> int:
        async with session_maker() as session:
            r = await session.execute(select(func.count()).select_from(OAuth2Token))
            return r.scalar_one()

    return _count
