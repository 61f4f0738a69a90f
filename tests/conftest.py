"""
Test infrastructure for the Blog API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- ``install_sqlite_savepoints`` makes ``begin_nested()`` behave on SQLite,
  which the counter maintenance relies on.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the production one.
- All tables are created fresh before each test and dropped after, giving
  each test a clean isolated state without needing transactions or truncation.
- Redis is replaced by ``FakeRedis``, an in-memory stand-in for the few
  commands ``TokenStore`` uses.  It is injected through the
  ``get_authenticator`` dependency, the same seam the lifespan fills in
  production.
"""
import os
import time

# blog_api.config builds its settings at import time and has no default
# for these.
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DB_PASSWORD", "test-password")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from blog_api.auth import SessionAuthenticator
from blog_api.cache import TokenStore
from blog_api.config import settings
from blog_api.database import Base, get_db, install_sqlite_savepoints
from blog_api.dependencies import get_authenticator
from blog_api.main import app

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_sqlite_savepoints(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Dependency override: replace production get_db with the test session factory
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Redis double
# ---------------------------------------------------------------------------

class FakeRedis:
    """In-memory replacement for the redis.asyncio commands TokenStore uses."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.expiry: dict[str, float] = {}
        self.ttls: dict[str, int] = {}
        self.broken = False

    def _check(self) -> None:
        if self.broken:
            raise RedisConnectionError("redis is down")

    def _purge(self, key: str) -> None:
        deadline = self.expiry.get(key)
        if deadline is not None and deadline <= time.monotonic():
            self.data.pop(key, None)
            self.expiry.pop(key, None)

    async def ping(self) -> bool:
        self._check()
        return True

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self._check()
        self.data[key] = value
        if ex is not None:
            self.ttls[key] = ex
            self.expiry[key] = time.monotonic() + ex
        else:
            self.expiry.pop(key, None)
        return True

    async def get(self, key: str) -> str | None:
        self._check()
        self._purge(key)
        return self.data.get(key)

    async def delete(self, *keys: str) -> int:
        self._check()
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.expiry.pop(key, None)
        return removed

    def expire_now(self, key: str) -> None:
        self.expiry[key] = time.monotonic() - 1

    async def aclose(self) -> None:
        pass


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """
    Yield a live AsyncSession for tests that need to interact with the
    database directly (e.g. seeding data, asserting ORM state).
    """
    async with async_session_test() as session:
        yield session


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def authenticator(fake_redis: FakeRedis) -> SessionAuthenticator:
    return SessionAuthenticator(TokenStore(client=fake_redis), settings)


@pytest_asyncio.fixture
async def async_client(authenticator: SessionAuthenticator) -> AsyncClient:
    """
    Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport,
    with the session authenticator backed by ``FakeRedis``.
    """
    app.dependency_overrides[get_authenticator] = lambda: authenticator
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_authenticator, None)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def register(
    client: AsyncClient, username: str, password: str = "secret1", nickname: str | None = None
) -> int:
    resp = await client.post("/api/v1/user/register", json={
        "username": username,
        "nickname": nickname or username.title(),
        "password": password,
    })
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["userId"]


async def login(client: AsyncClient, username: str, password: str = "secret1") -> str:
    resp = await client.post("/api/v1/user/login", json={
        "username": username,
        "password": password,
    })
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["token"]


async def register_and_login(client: AsyncClient, username: str) -> tuple[int, dict]:
    """Register *username* and return (user_id, auth headers)."""
    user_id = await register(client, username)
    token = await login(client, username)
    return user_id, {"Authorization": f"Bearer {token}"}


async def create_post(client: AsyncClient, headers: dict, title: str = "A", content: str = "B") -> int:
    resp = await client.post(
        "/api/v1/post/create", json={"title": title, "content": content}, headers=headers
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["id"]


async def create_comment(client: AsyncClient, headers: dict, post_id: int, content: str = "Nice") -> int:
    resp = await client.post(
        "/api/v1/comment/create", json={"postId": post_id, "content": content}, headers=headers
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["id"]


async def fetch(model, row_id: int):
    """Load a row in a short-lived session so the shared connection is free again."""
    async with async_session_test() as session:
        return await session.get(model, row_id)
