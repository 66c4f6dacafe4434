# tests/test_basic_endpoints.py
import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def test_ping_health(client: AsyncClient):
    r = await client.get("/api/v1/ping/")
    assert r.status_code == 200
    assert r.json().get("message") == "pong"

    r = await client.get("/api/v1/health/")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["database"] == "ok"


async def test_ops_endpoints_and_security_headers(client: AsyncClient):
    r = await client.get("/healthz")
    assert r.status_code == 200
    assert r.json().get("ok") is True
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"

    r = await client.get("/readyz")
    assert r.json().get("ready") is True

    r = await client.get("/")
    assert r.json()["env"] == "test"


async def test_metrics_exposed(client: AsyncClient):
    r = await client.get("/metrics")
    assert r.status_code == 200
    assert "# HELP" in r.text  # Prometheus metrics 格式驗證
