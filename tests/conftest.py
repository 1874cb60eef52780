"""Shared test fixtures.

Database tests run against a temporary SQLite file through aiosqlite, with
one connection per session (NullPool) so concurrent check-ins really contend
on the unique (user, day) key.
"""

import os
import tempfile

_TEST_DIR = tempfile.mkdtemp(prefix="daily-checkin-tests-")

# Settings are read at import time by daily_checkin.utils.db
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/app.db"
os.environ["JWT_SECRET_KEY"] = "unit-test-jwt-signing-key-4f9c2a7e1b8d"
os.environ["ADMIN_API_KEY"] = "unit-test-admin-key-7d3e9a"
os.environ["APP_ENV"] = "test"
os.environ["APP_DEBUG"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["ENABLE_METRICS"] = "true"
os.environ.pop("REDIS_URL", None)
os.environ.pop("SENTRY_DSN", None)

from collections.abc import AsyncGenerator  # noqa: E402
from decimal import Decimal  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool  # noqa: E402

from daily_checkin.models import Base, RedemptionCode, User  # noqa: E402


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Fresh SQLite database with all tables for each test."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'checkin.db'}",
        poolclass=NullPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """A session for the code under test."""
    async with session_factory() as session:
        yield session


# =============================================================================
# Data Helpers
# =============================================================================


async def create_user(session_factory, **overrides) -> User:
    """Insert a user and return it (detached, fully loaded)."""
    values = {
        "id": str(uuid4()),
        "external_id": f"ext-{uuid4().hex[:12]}",
        "username": f"user_{uuid4().hex[:6]}",
        "current_level": 1,
        "experience": 0,
        "total_checkins": 0,
        "consecutive_checkins": 0,
        "max_consecutive": 0,
        "last_checkin_date": None,
    }
    values.update(overrides)
    async with session_factory() as session:
        user = User(**values)
        session.add(user)
        await session.commit()
        return user


async def add_codes(
    session_factory,
    count: int,
    amount: Decimal = Decimal("1.00"),
    prefix: str = "KYXTEST",
) -> list[str]:
    """Insert ``count`` undistributed codes and return their strings."""
    codes = [f"{prefix}{i:04d}{uuid4().hex[:4]}" for i in range(count)]
    async with session_factory() as session:
        session.add_all(RedemptionCode(code=code, amount=amount) for code in codes)
        await session.commit()
    return codes


@pytest_asyncio.fixture
async def user(session_factory) -> User:
    return await create_user(session_factory)
