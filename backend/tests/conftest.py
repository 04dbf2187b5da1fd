"""
Storefront Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test that needs a store gets a fresh in-memory SQLite database
       (FK enforcement on, schema created, seed data inserted), so tests
       never share state.

Fixture Hierarchy (all function-scoped):
    ├── db_engine:       in-memory SQLite engine, created + seeded
    │   ├── db_session:  AsyncSession for service-level tests
    │   └── test_client: HTTPX AsyncClient with get_db_session overridden
    ├── mock_db_session: AsyncMock session for error-path unit tests
    └── fixed_now:       a fixed aware UTC timestamp for period tests
"""

import os
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

# Must be set before storefront.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["PASSWORD_HASH_ITERATIONS"] = "1000"
os.environ["SEED_ON_STARTUP"] = "false"

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from storefront.database import enable_sqlite_foreign_keys, get_db_session, init_database


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    Fresh seeded in-memory store.

    StaticPool keeps the single in-memory connection alive across sessions;
    without it every new connection would see an empty database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    await init_database(bind=engine, seed=True)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """
    Session for calling services directly.

    Services only flush, so everything a test writes stays visible inside
    this session and is discarded at teardown.
    """
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_client(db_engine, monkeypatch):
    """
    HTTPX AsyncClient talking to a fresh app bound to the test store.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from storefront import database
    from storefront.main import create_app

    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db_session():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    # /health probes the module-level engine directly
    monkeypatch.setattr(database, "engine", db_engine)

    app = create_app()
    app.dependency_overrides[get_db_session] = override_get_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ══════════════════════════════════════════════════════════════════════════
# Unit-Test Helpers
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    A mock async database session for error-path tests.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception())
        with pytest.raises(DatabaseError):
            await category_service.list_categories(mock_db_session)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def fixed_now():
    """Mid-month, mid-day UTC timestamp so day/month/year ranges are unambiguous."""
    return datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
