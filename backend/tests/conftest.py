"""
Pytest fixtures for test database, client, and admin access.

Runs against a throwaway SQLite file by default; point TEST_DATABASE_URL
at a PostgreSQL database to exercise row locks and asyncpg. Tables are
created and dropped per test for isolation.
"""

import os
import tempfile
import uuid
from typing import AsyncGenerator

TEST_DATABASE_URL = os.environ.get(
    "TEST_DATABASE_URL",
    f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), f'event_registration_test_{uuid.uuid4().hex}.db')}",
)
ADMIN_SECRET = "test-admin-secret"
AUTOMATION_SECRET = "test-automation-secret"

# Settings are read once at import time, so these must be set first
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["REDIS_ENABLED"] = "false"
os.environ["ADMIN_SECRET"] = ADMIN_SECRET
os.environ["AUTOMATION_SECRET"] = AUTOMATION_SECRET
os.environ["REGISTRATION_POSTPONED"] = "false"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from event_registration.main import app  # noqa: E402
from event_registration.core.config import get_settings  # noqa: E402
from event_registration.db.base import Base  # noqa: E402
from event_registration.db.session import get_db  # noqa: E402
from event_registration.services import capacity_ledger  # noqa: E402

_connect_args = {"timeout": 30} if TEST_DATABASE_URL.startswith("sqlite") else {}

# NullPool: every session gets its own connection, as concurrent requests would
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    poolclass=NullPool,
    connect_args=_connect_args,
)
TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def session_factory():
    """Factory for independent sessions, used to simulate concurrent requests."""
    return TestSessionLocal


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables and seed the ledger, yield session, then drop tables."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    settings = get_settings()
    async with TestSessionLocal() as session:
        await capacity_ledger.ensure_initialized(
            session, settings.REGIONS, settings.DEFAULT_REGION_CAPACITY
        )
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict:
    return {"X-Admin-Secret": ADMIN_SECRET}


@pytest.fixture
def automation_headers() -> dict:
    return {"X-Automation-Secret": AUTOMATION_SECRET}


@pytest.fixture
def make_registration():
    """Build a registration form; every call gets a distinct email."""

    def _make(region: str = "Brooklyn", **overrides) -> dict:
        data = {
            "first_name": "Ana",
            "last_name": "Lopez",
            "title": "Educator",
            "program": "Early Childhood",
            "email": f"ana.{uuid.uuid4().hex[:10]}@borough.org",
            "region": region,
        }
        data.update(overrides)
        return data

    return _make


@pytest_asyncio.fixture
async def set_max(db_session: AsyncSession):
    """Set a region's max capacity and commit it."""

    async def _set(region: str, new_max: int):
        capacity = await capacity_ledger.set_max(db_session, region, new_max)
        await db_session.commit()
        return capacity

    return _set
