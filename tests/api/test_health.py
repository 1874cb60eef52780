"""Tests for health, root and metrics endpoints."""

import pytest
from httpx import AsyncClient

from tests.conftest import add_codes


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, test_client: AsyncClient):
        response = await test_client.get("/health")

        assert response.status_code == 200
        result = response.json()
        assert result["status"] == "healthy"
        assert result["services"] == {"database": "healthy", "redis": "disabled"}

    @pytest.mark.asyncio
    async def test_health_reports_stock(self, test_client: AsyncClient, session_factory, auth_headers: dict):
        await add_codes(session_factory, 2)
        await test_client.post("/api/v1/checkin", headers=auth_headers)

        response = await test_client.get("/health")

        assert response.json()["inventory"] == {"availableCodes": 1, "pendingDistributions": 0}

    @pytest.mark.asyncio
    async def test_root(self, test_client: AsyncClient):
        response = await test_client.get("/")

        assert response.status_code == 200
        assert response.json()["health"] == "/health"

    @pytest.mark.asyncio
    async def test_request_id_header(self, test_client: AsyncClient):
        response = await test_client.get("/", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    @pytest.mark.asyncio
    async def test_unknown_route_uses_error_envelope(self, test_client: AsyncClient):
        response = await test_client.get("/api/v1/nope", headers={"X-Request-ID": "req-404"})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "HTTP_ERROR"
        assert response.json()["traceId"] == "req-404"


class TestMetrics:

    @pytest.mark.asyncio
    async def test_metrics_exposed(self, test_client: AsyncClient, auth_headers: dict):
        await test_client.post("/api/v1/checkin", headers=auth_headers)

        response = await test_client.get("/metrics")

        assert response.status_code == 200
        assert "checkin_checkins_total" in response.text
