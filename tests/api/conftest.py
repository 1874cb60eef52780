"""Fixtures for API integration tests."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from daily_checkin.config import get_settings
from daily_checkin.main import app
from daily_checkin.models.user import User
from daily_checkin.utils.db import get_db
from daily_checkin.utils.security import create_access_token

API = "/api/v1"


# =============================================================================
# FastAPI App & Client Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def test_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the real app, bound to the test database."""

    async def override_get_db():
        """Commit after each request like the production dependency."""
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# =============================================================================
# Auth Fixtures
# =============================================================================


def auth_headers_for(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def auth_headers(user: User) -> dict[str, str]:
    return auth_headers_for(user)


@pytest.fixture
def invalid_auth_headers() -> dict[str, str]:
    return {"Authorization": "Bearer not-a-real-token"}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-API-Key": get_settings().admin_api_key}
