"""
Sleep analysis pipeline: sanitize -> validate -> build prompts -> call LLM -> parse.
Stateless; nothing is stored. Validation and gateway failures are raised as typed
errors (core.errors) that the API layer renders as JSON.
"""
import logging
from datetime import datetime, timezone
from typing import Any

from prometheus_client import Counter

from sleep_api.core.errors import GatewayError, InputValidationError
from sleep_api.schemas.sleep import AnalysisResponse
from sleep_api.services.llm_gateway import send_chat_completion
from sleep_api.services.prompts import get_sleep_analysis_prompts
from sleep_api.services.response_parser import FALLBACK, parse_analysis_text
from sleep_api.services.sanitizer import sanitize_sleep_data
from sleep_api.services.validator import validate_sleep_data

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Analyse erfolgreich erstellt"

ANALYSES_TOTAL = Counter(
    "sleep_analyses_total",
    "Sleep analysis requests by outcome",
    ["outcome"],
)


async def analyze_sleep(payload: Any, api_key: str) -> AnalysisResponse:
    """
    Run the full pipeline for one request body.
    Raises InputValidationError (400) before any external call, GatewayError on LLM failure.
    """
    record = sanitize_sleep_data(payload)

    validation = validate_sleep_data(record)
    if validation.warnings:
        logger.info("Sleep data warnings for %s: %s", record.date if record else "?", "; ".join(validation.warnings))
    if not validation.valid:
        ANALYSES_TOTAL.labels(outcome="invalid").inc()
        logger.info("Sleep data rejected: %s", ", ".join(validation.errors))
        raise InputValidationError(validation.errors)

    prompts = get_sleep_analysis_prompts(record)
    result = await send_chat_completion(prompts.system_prompt, prompts.user_prompt, api_key)
    if not result.success:
        ANALYSES_TOTAL.labels(outcome="gateway_error").inc()
        logger.warning("LLM call failed (status %s): %s", result.status_code, result.error)
        raise GatewayError(status_code=result.status_code or 500)

    parsed = parse_analysis_text(result.content)
    if parsed.score == FALLBACK:
        logger.info("Score line not found in LLM reply for %s; using fallback", record.date)
    ANALYSES_TOTAL.labels(outcome="success").inc()
    return AnalysisResponse(
        success=True,
        message=SUCCESS_MESSAGE,
        timestamp=datetime.now(timezone.utc).isoformat(),
        **parsed.model_dump(),
    )
