"""Tests for the OpenAI gateway (httpx.MockTransport, no network)."""

import json

import httpx
import pytest

from sleep_api.config import settings
from sleep_api.services.llm_gateway import check_openai_health, send_chat_completion


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.mark.asyncio
async def test_send_chat_completion_success():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion("➡️ Gesamt: 40 / 50 = 80 % (Gut)"))

    async with _client(handler) as client:
        result = await send_chat_completion("system", "user", "sk-test", client=client)

    assert result.success is True
    assert result.status_code == 200
    assert result.content.startswith("➡️ Gesamt")
    assert seen["url"] == settings.openai_api_url
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"]["model"] == settings.openai_model
    assert seen["body"]["max_tokens"] == settings.openai_max_tokens
    assert seen["body"]["temperature"] == settings.openai_temperature
    assert seen["body"]["messages"] == [
        {"role": "system", "content": "system"},
        {"role": "user", "content": "user"},
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 401, 429, 500, 503])
async def test_send_chat_completion_upstream_error(status):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"error": {"message": "secret upstream detail"}})

    async with _client(handler) as client:
        result = await send_chat_completion("s", "u", "sk-test", client=client)

    assert result.success is False
    assert result.status_code == status
    assert result.error == "OpenAI API request failed"
    assert "secret" not in result.error


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    _completion(""),
    _completion(None),
    {"choices": []},
    {"unexpected": True},
    ["not", "a", "dict"],
])
async def test_send_chat_completion_empty_reply(body):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    async with _client(handler) as client:
        result = await send_chat_completion("s", "u", "sk-test", client=client)

    assert result.success is False
    assert result.error == "Empty response from OpenAI"
    assert result.status_code == 502


@pytest.mark.asyncio
async def test_send_chat_completion_non_json_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    async with _client(handler) as client:
        result = await send_chat_completion("s", "u", "sk-test", client=client)

    assert result.success is False
    assert result.status_code == 502


@pytest.mark.asyncio
async def test_send_chat_completion_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        result = await send_chat_completion("s", "u", "sk-test", client=client)

    assert result.success is False
    assert result.status_code == 500
    assert "connection refused" in result.error


@pytest.mark.asyncio
async def test_send_chat_completion_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    async with _client(handler) as client:
        result = await send_chat_completion("s", "u", "sk-test", client=client)

    assert result.success is False
    assert result.status_code == 504


@pytest.mark.asyncio
async def test_send_chat_completion_without_client_does_not_raise():
    """No shared client opened (lifespan not run): still a failure result, not an exception."""
    result = await send_chat_completion("s", "u", "sk-test")
    assert result.success is False
    assert result.status_code == 500


@pytest.mark.asyncio
async def test_check_openai_health():
    def ok(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer sk-test"
        return httpx.Response(200, json={"data": []})

    def denied(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401)

    def broken(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    async with _client(ok) as client:
        assert await check_openai_health("sk-test", client=client) is True
    async with _client(denied) as client:
        assert await check_openai_health("sk-test", client=client) is False
    async with _client(broken) as client:
        assert await check_openai_health("sk-test", client=client) is False
