"""Sleep analysis API: POST manually entered sleep data, get an LLM sleep report back."""

import json
import logging

from fastapi import APIRouter, Request

from sleep_api.config import settings
from sleep_api.core.errors import AnalysisError, AnalysisFailedError, ConfigurationError
from sleep_api.core.rate_limit import limiter
from sleep_api.schemas.sleep import AnalysisResponse, ErrorResponse
from sleep_api.services import sleep_analysis
from sleep_api.services.sanitizer import bounded_int

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analyze"])


async def _read_json_body(request: Request):
    """Parsed body, or None when it is not valid JSON (treated as "not an object")."""
    body = await request.body()
    if not body:
        return None
    try:
        return json.loads(body, parse_int=bounded_int)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.info("Analyze: request body is not valid JSON (%d bytes)", len(body))
        return None


@router.post(
    "/analyze",
    response_model=AnalysisResponse,
    summary="Analyze one night of sleep data",
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid sleep data"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        500: {"model": ErrorResponse, "description": "Configuration or internal error"},
    },
)
@limiter.limit(settings.rate_limit)
async def analyze(request: Request) -> AnalysisResponse:
    """
    Sanitize and validate the body, ask the LLM for a sleep report and return it with the
    extracted score. The body is read manually: hostile input is clamped, not rejected by schema.
    """
    api_key = settings.openai_api_key
    if not api_key:
        logger.error("Analyze: OPENAI_API_KEY is not set")
        raise ConfigurationError()

    try:
        payload = await _read_json_body(request)
        return await sleep_analysis.analyze_sleep(payload, api_key)
    except AnalysisError:
        raise
    except Exception:
        logger.exception("Analyze: unexpected error")
        raise AnalysisFailedError()
