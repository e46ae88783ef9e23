"""
User Registry — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (mocked store, real SQLite store, API client).
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_store: AsyncMock implementing the UserStore interface
    ├── make_user: Factory for transient User rows with id/created_at filled in
    ├── db_engine: Fresh in-memory SQLite database with the schema created
    ├── db_session: AsyncSession bound to db_engine
    ├── sql_service: UserService over SQLAlchemyUserStore(db_session)
    └── test_client: HTTPX AsyncClient against the app, sessions from db_engine
"""

import os

# Override settings for testing BEFORE any user_registry imports
# Why: Prevents tests from touching a real PostgreSQL database
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests

from datetime import datetime, timedelta, timezone
from itertools import count
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from user_registry.database import Base, get_db_session
from user_registry.models.user import User
from user_registry.services.sql_store import SQLAlchemyUserStore
from user_registry.services.store_base import UserStore
from user_registry.services.user_service import UserService


# ══════════════════════════════════════════════════════════════════════════
# Mocked Store Fixtures (no database)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_store():
    """
    Provides a mock record store.

    Usage:
        async def test_read_one(mock_store, make_user):
            mock_store.get_by_id.return_value = make_user()
            result = await UserService(mock_store).read_one(1)
    """
    store = AsyncMock(spec=UserStore)
    store.get_by_id.return_value = None
    store.get_by_email.return_value = None
    store.list_page.return_value = ([], 0)
    # insert/save hand back whatever they were given, like the real store
    store.insert.side_effect = _assign_identity
    store.save.side_effect = lambda user: user
    return store


_ids = count(1000)


async def _assign_identity(user: User) -> User:
    user.id = next(_ids)
    user.created_at = datetime.now(timezone.utc)
    return user


@pytest.fixture
def make_user():
    """Builds transient User rows; each call gets a new id and an older timestamp."""
    ids = count(1)
    base = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)

    def _make(name="Alice", email=None, age=None):
        user_id = next(ids)
        return User(
            id=user_id,
            name=name,
            email=email or f"user{user_id}@example.com",
            age=age,
            created_at=base - timedelta(minutes=user_id),
        )

    return _make


# ══════════════════════════════════════════════════════════════════════════
# Real Store Fixtures (in-memory SQLite via aiosqlite)
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    Fresh in-memory database per test.

    StaticPool keeps the single connection alive; a second connection to
    sqlite:// would see an empty database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def sql_service(db_session):
    return UserService(SQLAlchemyUserStore(db_session))


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(db_engine):
    """
    HTTPX AsyncClient wired to a fresh app instance.

    get_db_session is overridden with the same commit/rollback behavior,
    but over the per-test SQLite engine.
    """
    from user_registry.main import create_app

    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_session():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db_session] = override_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
