"""Tests for check-in API endpoints."""

import asyncio
from datetime import timedelta

import pytest
from httpx import AsyncClient

from daily_checkin.models.user import User, UserStatus
from daily_checkin.utils.security import create_access_token
from tests.api.conftest import API, auth_headers_for
from tests.conftest import add_codes, create_user


class TestCheckin:
    """Tests for POST /api/v1/checkin"""

    @pytest.mark.asyncio
    async def test_checkin_success(
        self, test_client: AsyncClient, session_factory, auth_headers: dict
    ):
        [code] = await add_codes(session_factory, 1)

        response = await test_client.post(f"{API}/checkin", headers=auth_headers)

        assert response.status_code == 200
        result = response.json()
        assert result["status"] == "completed"
        assert result["code"] == code
        assert result["codeAmount"] == "1.00"
        assert result["experienceGained"] == 13
        assert result["consecutiveDays"] == 1
        assert result["reward"] == {
            "baseExp": 10,
            "levelBonusExp": 1,
            "streakBonusExp": 2,
            "totalExp": 13,
            "codeAmount": "1.10",
        }
        assert result["levelUp"] is None

    @pytest.mark.asyncio
    async def test_checkin_pending(self, test_client: AsyncClient, auth_headers: dict):
        response = await test_client.post(f"{API}/checkin", headers=auth_headers)

        assert response.status_code == 200
        result = response.json()
        assert result["status"] == "pending_distribution"
        assert result["code"] is None
        assert result["codeAmount"] == "1.10"

    @pytest.mark.asyncio
    async def test_second_checkin_returns_400_with_same_code(
        self, test_client: AsyncClient, session_factory, auth_headers: dict
    ):
        """Should answer a repeat with 400 and the original result."""
        await add_codes(session_factory, 2)
        first = await test_client.post(f"{API}/checkin", headers=auth_headers)

        second = await test_client.post(f"{API}/checkin", headers=auth_headers)

        assert second.status_code == 400
        result = second.json()
        assert result["status"] == "already_checked_in"
        assert result["code"] == first.json()["code"]
        assert result["checkInDate"] == first.json()["checkInDate"]

    @pytest.mark.asyncio
    async def test_concurrent_requests(
        self, test_client: AsyncClient, session_factory, auth_headers: dict
    ):
        await add_codes(session_factory, 5)

        responses = await asyncio.gather(
            *(test_client.post(f"{API}/checkin", headers=auth_headers) for _ in range(5))
        )

        codes = sorted(r.status_code for r in responses)
        assert codes == [200, 400, 400, 400, 400]
        assert len({r.json()["code"] for r in responses}) == 1

    @pytest.mark.asyncio
    async def test_unauthorized(self, test_client: AsyncClient):
        response = await test_client.post(f"{API}/checkin")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_REQUIRED"

    @pytest.mark.asyncio
    async def test_invalid_token(self, test_client: AsyncClient, invalid_auth_headers: dict):
        response = await test_client.post(f"{API}/checkin", headers=invalid_auth_headers)

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_INVALID_TOKEN"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_expired_token(self, test_client: AsyncClient, user: User):
        token = create_access_token(user.id, expires_in=timedelta(seconds=-5))

        response = await test_client.post(
            f"{API}/checkin", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "TOKEN_EXPIRED"

    @pytest.mark.asyncio
    async def test_suspended_user(self, test_client: AsyncClient, session_factory):
        suspended = await create_user(session_factory, status=UserStatus.SUSPENDED.value)

        response = await test_client.post(
            f"{API}/checkin", headers=auth_headers_for(suspended)
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "AUTH_ACCOUNT_INACTIVE"

    @pytest.mark.asyncio
    async def test_malformed_user_state(self, test_client: AsyncClient, session_factory):
        broken = await create_user(session_factory, consecutive_checkins=-3)

        response = await test_client.post(f"{API}/checkin", headers=auth_headers_for(broken))

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "MALFORMED_USER_STATE"


class TestCheckinStatus:
    """Tests for GET /api/v1/checkin/status"""

    @pytest.mark.asyncio
    async def test_status_after_checkin(
        self, test_client: AsyncClient, session_factory, auth_headers: dict
    ):
        await add_codes(session_factory, 1)
        await test_client.post(f"{API}/checkin", headers=auth_headers)

        response = await test_client.get(f"{API}/checkin/status", headers=auth_headers)

        assert response.status_code == 200
        result = response.json()
        assert result["checkedIn"] is True
        assert result["record"]["consecutiveDays"] == 1
        assert result["stats"]["totalCheckins"] == 1
        assert result["stats"]["codeCount"] == 1
        assert result["stats"]["totalAmount"] == "1.00"
        assert result["nextBonus"]["daysRemaining"] == 6
        assert result["nextLevel"] == {"level": 2, "requiredExperience": 100}

    @pytest.mark.asyncio
    async def test_status_before_checkin(self, test_client: AsyncClient, auth_headers: dict):
        response = await test_client.get(f"{API}/checkin/status", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["checkedIn"] is False
        assert response.json()["record"] is None


class TestCheckinHistory:
    """Tests for GET /api/v1/checkin/history"""

    @pytest.mark.asyncio
    async def test_history(self, test_client: AsyncClient, auth_headers: dict):
        await test_client.post(f"{API}/checkin", headers=auth_headers)

        response = await test_client.get(f"{API}/checkin/history", headers=auth_headers)

        assert response.status_code == 200
        result = response.json()
        assert len(result["items"]) == 1
        assert result["items"][0]["status"] == "pending_distribution"
        assert result["pagination"]["totalItems"] == 1

    @pytest.mark.asyncio
    async def test_limit_out_of_range(self, test_client: AsyncClient, auth_headers: dict):
        response = await test_client.get(
            f"{API}/checkin/history", params={"limit": 500}, headers=auth_headers
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"]["errors"][0]["field"] == "query.limit"


class TestCheckinCalendar:
    """Tests for GET /api/v1/checkin/calendar"""

    @pytest.mark.asyncio
    async def test_empty_month(self, test_client: AsyncClient, auth_headers: dict):
        response = await test_client.get(
            f"{API}/checkin/calendar",
            params={"year": 2024, "month": 2},
            headers=auth_headers,
        )

        assert response.status_code == 200
        result = response.json()
        assert result["firstDay"] == "2024-02-01"
        assert result["lastDay"] == "2024-02-29"
        assert result["days"] == []
        assert result["count"] == 0

    @pytest.mark.asyncio
    async def test_defaults_to_current_month(
        self, test_client: AsyncClient, auth_headers: dict
    ):
        checkin = await test_client.post(f"{API}/checkin", headers=auth_headers)
        today = checkin.json()["checkInDate"]

        response = await test_client.get(f"{API}/checkin/calendar", headers=auth_headers)

        assert response.status_code == 200
        result = response.json()
        assert result["year"] == int(today[:4])
        assert result["month"] == int(today[5:7])
        assert [day["date"] for day in result["days"]] == [today]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("year,month", [(2019, 1), (2024, 13)])
    async def test_out_of_range(
        self, test_client: AsyncClient, auth_headers: dict, year: int, month: int
    ):
        response = await test_client.get(
            f"{API}/checkin/calendar",
            params={"year": year, "month": month},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"
