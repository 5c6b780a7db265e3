"""
OpenAI chat-completion gateway: the only place that talks to the LLM provider.
send_chat_completion never raises; network errors, non-2xx responses and empty
replies all come back as ChatCompletionResult(success=False, ...).
The API key is passed per call; this module keeps no credentials.
"""
from __future__ import annotations

import logging

import httpx

from sleep_api.config import settings
from sleep_api.schemas.sleep import ChatCompletionResult

logger = logging.getLogger(__name__)

# Shared long-lived client, opened/closed by the app lifespan
_client: httpx.AsyncClient | None = None


def open_client(timeout: float | None = None) -> httpx.AsyncClient:
    """Create the shared client (idempotent). Every request is bounded by the timeout."""
    global _client
    if _client is None:
        _client = httpx.AsyncClient(timeout=timeout or settings.openai_request_timeout_seconds)
    return _client


def get_client() -> httpx.AsyncClient:
    if _client is None:
        raise RuntimeError("LLM gateway client not initialized; ensure app lifespan has run open_client().")
    return _client


async def close_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


def _request_body(system_prompt: str, user_prompt: str) -> dict:
    return {
        "model": settings.openai_model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "max_tokens": settings.openai_max_tokens,
        "temperature": settings.openai_temperature,
    }


def _extract_content(data: object) -> str | None:
    """choices[0].message.content, or None for any other shape."""
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) and content.strip() else None


async def send_chat_completion(
    system_prompt: str,
    user_prompt: str,
    api_key: str,
    client: httpx.AsyncClient | None = None,
) -> ChatCompletionResult:
    """One POST to the chat-completion endpoint. No retries."""
    url = settings.openai_api_url
    try:
        http = client or get_client()
        response = await http.post(
            url,
            json=_request_body(system_prompt, user_prompt),
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=settings.openai_request_timeout_seconds,
        )
    except httpx.TimeoutException as e:
        logger.warning("OpenAI request timed out after %ss: %s", settings.openai_request_timeout_seconds, e)
        return ChatCompletionResult(success=False, status_code=504, error="OpenAI request timed out")
    except Exception as e:
        logger.warning("OpenAI request failed: %s", e)
        return ChatCompletionResult(success=False, status_code=500, error=str(e) or "Network error")

    if response.status_code >= 400:
        # Upstream detail is logged only; callers get the generic error
        logger.warning("OpenAI POST %s -> %s body=%s", url, response.status_code, (response.text or "")[:500])
        return ChatCompletionResult(
            success=False,
            status_code=response.status_code,
            error="OpenAI API request failed",
        )

    try:
        data = response.json()
    except ValueError:
        logger.warning("OpenAI returned non-JSON body (first 200 chars): %s", (response.text or "")[:200])
        data = None
    content = _extract_content(data)
    if content is None:
        return ChatCompletionResult(success=False, status_code=502, error="Empty response from OpenAI")
    return ChatCompletionResult(success=True, status_code=response.status_code, content=content)


async def check_openai_health(api_key: str, client: httpx.AsyncClient | None = None) -> bool:
    """True if the models endpoint accepts the key."""
    try:
        http = client or get_client()
        response = await http.get(settings.openai_models_url, headers={"Authorization": f"Bearer {api_key}"})
    except (httpx.HTTPError, RuntimeError) as e:
        logger.info("OpenAI health check failed: %s", e)
        return False
    return response.is_success
