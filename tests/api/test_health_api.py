"""Tests for health endpoints and app-level middleware."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_reports_database(client: AsyncClient) -> None:
    response = await client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "clinic-records-service"
    assert data["checks"]["database"]["status"] == "healthy"


@pytest.mark.asyncio
async def test_ready_and_live(client: AsyncClient) -> None:
    assert (await client.get("/api/v1/ready")).json() == {"status": "ready"}
    assert (await client.get("/api/v1/live")).json() == {"status": "alive"}


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient) -> None:
    response = await client.get("/api/v1/live", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"
    assert response.headers["X-Content-Type-Options"] == "nosniff"


@pytest.mark.asyncio
async def test_root_lists_service(client: AsyncClient) -> None:
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["health"] == "/api/v1/health"
