"""
Think Board Backend - Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment overrides are applied BEFORE any thinkboard import so the
       module-level settings/engine never point at a real database.

Fixture Hierarchy (all function-scoped):
    test_settings      Settings with a test secret, fast bcrypt, generous rate limit
    hasher             PasswordHasher at the test cost factor
    db_engine          In-memory aiosqlite engine with all tables created
    session_factory    async_sessionmaker bound to db_engine
    db_session         One AsyncSession for service-level tests
    mock_db_session    AsyncMock session for isolated failure-path tests
    app                create_app(test_settings) with get_db_session overridden
    test_client        HTTPX AsyncClient talking to `app` over ASGI
    alice / bob        Persisted users for ownership tests
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret-not-for-production-0123456789"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import AsyncGenerator  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

import thinkboard.models  # noqa: E402,F401
from thinkboard.config import Settings  # noqa: E402
from thinkboard.database import Base, get_db_session  # noqa: E402
from thinkboard.models.user import User  # noqa: E402
from thinkboard.security import PasswordHasher  # noqa: E402

TEST_SECRET = os.environ["JWT_SECRET"]

# bcrypt at the minimum cost keeps the suite fast; the algorithm is unchanged
TEST_BCRYPT_ROUNDS = 4


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite+aiosqlite://",
        "jwt_secret": TEST_SECRET,
        "bcrypt_rounds": TEST_BCRYPT_ROUNDS,
        "rate_limit_requests": 1000,
        "rate_limit_window": 60,
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=TEST_BCRYPT_ROUNDS)


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    Fresh in-memory SQLite database per test.

    StaticPool keeps a single connection alive so every session sees the
    same in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    A mock async session for failure-path tests.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception())
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


async def _create_user(session: AsyncSession, username: str, password: str) -> User:
    hashed = PasswordHasher(rounds=TEST_BCRYPT_ROUNDS).hash(password)
    user = User(username=username, password_hash=hashed)
    session.add(user)
    await session.commit()
    return user


@pytest_asyncio.fixture
async def alice(db_session) -> User:
    return await _create_user(db_session, "alice", "alice-password")


@pytest_asyncio.fixture
async def bob(db_session) -> User:
    return await _create_user(db_session, "bob", "bob-password")


# ══════════════════════════════════════════════════════════════════════════
# Application Fixtures
# ══════════════════════════════════════════════════════════════════════════

def build_test_app(settings: Settings, session_factory):
    """create_app() with the request-scoped session bound to the test database."""
    from thinkboard.main import create_app

    app = create_app(settings)

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    return app


@pytest.fixture
def app(test_settings, session_factory):
    return build_test_app(test_settings, session_factory)


@pytest.fixture
def app_factory(session_factory):
    """`app = app_factory(rate_limit_requests=2)` builds an app with overridden settings."""

    def _build(**overrides):
        return build_test_app(make_settings(**overrides), session_factory)

    return _build


@pytest_asyncio.fixture
async def test_client(app):
    """
    Async HTTP client routed straight into the ASGI app (no server).

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def register_and_login(client: AsyncClient, username: str, password: str) -> dict:
    """Register a user through the API and return Authorization headers."""
    response = await client.post(
        "/api/auth/register", json={"username": username, "password": password}
    )
    assert response.status_code == 201, response.text
    response = await client.post(
        "/api/auth/login", json={"username": username, "password": password}
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def login_as(test_client):
    """`headers = await login_as("alice", "secret1")` registers, logs in, returns auth headers."""

    async def _login(username: str, password: str) -> dict:
        return await register_and_login(test_client, username, password)

    return _login
