"""Tests for per-client rate limiting (fixed window, health check exempt)."""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from sleep_api.config import Settings, settings
from sleep_api.core.errors import RATE_LIMIT_MESSAGE
from sleep_api.main import app


def test_rate_limit_string():
    assert settings.rate_limit == "30/15 minutes"
    assert Settings(rate_limit_max_requests=5, rate_limit_window_minutes=1).rate_limit == "5/1 minutes"


@pytest.mark.asyncio
async def test_31st_request_is_rejected(client: AsyncClient):
    """30 requests pass through to the handler (here: validation 400), the 31st gets 429."""
    mock = AsyncMock()
    with patch("sleep_api.services.sleep_analysis.send_chat_completion", mock):
        for _ in range(settings.rate_limit_max_requests):
            resp = await client.post("/api/analyze", json={})
            assert resp.status_code == 400
        resp = await client.post("/api/analyze", json={})
    assert resp.status_code == 429
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["code"] == 429
    assert body["error"]["message"] == RATE_LIMIT_MESSAGE
    mock.assert_not_awaited()


@pytest.mark.asyncio
async def test_rejected_request_never_reaches_sanitizer(client: AsyncClient):
    for _ in range(settings.rate_limit_max_requests):
        await client.post("/api/analyze", json={})
    with patch("sleep_api.services.sleep_analysis.sanitize_sleep_data") as sanitize:
        resp = await client.post("/api/analyze", json={})
    assert resp.status_code == 429
    sanitize.assert_not_called()


@pytest.mark.asyncio
async def test_health_check_is_exempt(client: AsyncClient):
    for _ in range(settings.rate_limit_max_requests):
        await client.post("/api/analyze", json={})
    assert (await client.post("/api/analyze", json={})).status_code == 429
    for _ in range(settings.rate_limit_max_requests + 1):
        resp = await client.get("/")
        assert resp.status_code == 200


@pytest.mark.asyncio
async def test_limit_is_per_client_address(client: AsyncClient):
    for _ in range(settings.rate_limit_max_requests + 1):
        await client.post("/api/analyze", json={})
    other = AsyncClient(
        transport=ASGITransport(app=app, client=("10.0.0.2", 5000)),
        base_url="http://test",
    )
    async with other:
        resp = await other.post("/api/analyze", json={})
    assert resp.status_code == 400
