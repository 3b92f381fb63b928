"""Health and readiness endpoints."""

import pytest
from httpx import AsyncClient

from app.api.v1.endpoints import health


async def test_health_returns_ok(client: AsyncClient) -> None:
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": "1.0.0"}


async def test_health_echoes_request_id(client: AsyncClient) -> None:
    response = await client.get("/api/v1/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


async def test_readiness_checks_database(
    client: AsyncClient, session_factory, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(health, "get_session_factory", lambda: session_factory)
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 200
    assert response.json()["database"] == "ok"
    assert response.json()["scheduler"] is False


async def test_readiness_reports_unreachable_database(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    from app.domain.exceptions import SqlNotConfiguredException

    def _not_configured():
        raise SqlNotConfiguredException()

    monkeypatch.setattr(health, "get_session_factory", _not_configured)
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 503
