"""Root conftest — async DB and FastAPI test clients.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use the test DB
    - Each ``make_client`` call returns a client with its own cookie jar, so
      two users can be logged in side by side
"""

import os

# Keep the app's own engine away from any real database file
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("DEBUG", "false")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import idea_tracker.models  # noqa: F401
from idea_tracker.database import Base, enable_sqlite_foreign_keys, get_db
from idea_tracker.main import app
from tests.factories import create_user


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine.sync_engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def make_client(test_session_factory):
    """Factory for FastAPI test clients with the DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    clients = []

    async def _make():
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(client)
        return client

    yield _make

    for c in clients:
        await c.aclose()
    app.dependency_overrides.clear()


@pytest.fixture
async def client(make_client):
    return await make_client()


@pytest.fixture
async def alice(test_db):
    return await create_user(test_db, "alice", "pw1")


@pytest.fixture
async def bob(test_db):
    return await create_user(test_db, "bob", "pw2")


@pytest.fixture
async def carol(test_db):
    return await create_user(test_db, "carol", "pw3")
