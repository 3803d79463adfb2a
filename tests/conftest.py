import fnmatch
from typing import AsyncGenerator, Dict, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from lms_admin.core.config import Settings
from lms_admin.core.context import AppContext
from lms_admin.db.session import Base, create_engine, create_sessionmaker
from lms_admin.main import create_app


class FakeCache:
    """In-memory stand-in for CacheClient that records traffic."""

    def __init__(self, is_open: bool = True) -> None:
        self.is_open = is_open
        self.store: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.gets = 0
        self.sets = 0
        self.fail_get = False
        self.fail_set = False

    async def get(self, key: str) -> Optional[str]:
        self.gets += 1
        if self.fail_get:
            raise ConnectionError("redis down")
        return self.store.get(key)

    async def set(self, key: str, value: str, ttl: int) -> None:
        self.sets += 1
        if self.fail_set:
            raise ConnectionError("redis down")
        self.store[key] = value
        self.ttls[key] = ttl

    async def keys(self, pattern: str) -> List[str]:
        return [k for k in self.store if fnmatch.fnmatch(k, pattern)]

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed

    async def close(self) -> None:
        self.is_open = False


@pytest.fixture()
def settings(tmp_path) -> Settings:
    # File-backed SQLite so concurrent sessions (dashboard) each get a connection.
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'lms.db'}",
        lms_schema=None,
        elearning_schema=None,
        session_secret="test-secret",
        log_level="WARNING",
    )


@pytest.fixture()
async def engine(settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_engine(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return create_sessionmaker(engine)


@pytest.fixture()
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture()
def cache() -> FakeCache:
    return FakeCache()


@pytest.fixture()
def context(settings, engine, session_factory, cache) -> AppContext:
    return AppContext(settings=settings, engine=engine, sessionmaker=session_factory, cache=cache)


@pytest.fixture()
def app(context: AppContext):
    return create_app(context=context)


@pytest.fixture()
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Anonymous client. Redirects are not followed."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
async def auth_client(client: AsyncClient) -> AsyncClient:
    """Logged in through the Lotus's SSO stub (role: Student)."""
    response = await client.get("/auth/sso/lotuss")
    assert response.status_code == 302
    return client


@pytest.fixture()
async def admin_client(client: AsyncClient) -> AsyncClient:
    """Logged in through the Makro SSO stub (role: Manager)."""
    response = await client.get("/auth/sso/makro")
    assert response.status_code == 302
    return client
