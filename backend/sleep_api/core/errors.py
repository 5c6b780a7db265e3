"""
Typed failures of the analysis pipeline and their JSON rendering.
Every error leaves the API as {"success": false, "error": {"code", "message"}};
the machine-readable `details` code is only added in development.
"""
from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from sleep_api.config import settings

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP. Please wait before trying again."


class AnalysisError(Exception):
    """Base for failures that map 1:1 to an HTTP status and error body."""

    status_code: int = 500
    message: str = "Internal Server Error"
    details: str | None = None

    def __init__(self, message: str | None = None, status_code: int | None = None):
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ConfigurationError(AnalysisError):
    status_code = 500
    message = "API configuration missing"
    details = "MISSING_API_KEY"


class InputValidationError(AnalysisError):
    status_code = 400
    details = "INVALID_INPUT"

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(", ".join(self.errors))


class GatewayError(AnalysisError):
    status_code = 500
    message = "OpenAI API request failed"
    details = "OPENAI_ERROR"


class AnalysisFailedError(AnalysisError):
    status_code = 500
    message = "Interner Fehler bei der Analyse"
    details = "ANALYSIS_ERROR"


def create_error_response(status_code: int, message: str, details: str | None = None) -> dict:
    body: dict = {"success": False, "error": {"code": status_code, "message": message}}
    if details and settings.is_development:
        body["error"]["details"] = details
    return body


async def analysis_error_handler(request: Request, exc: AnalysisError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.status_code, exc.message, exc.details),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        message = f"Route {request.method} {request.url.path} not found"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.status_code, message),
        headers=getattr(exc, "headers", None),
    )


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Must stay sync: slowapi's middleware calls it without awaiting for sync endpoints."""
    logger.info("Rate limit exceeded for %s on %s", request.client.host if request.client else "?", request.url.path)
    return JSONResponse(
        status_code=429,
        content=create_error_response(429, RATE_LIMIT_MESSAGE),
    )
