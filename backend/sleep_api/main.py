import logging
import sys
from contextlib import asynccontextmanager

from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from sleep_api.api import analyze

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logging.getLogger("sleep_api").setLevel(logging.DEBUG)
from sleep_api.config import settings
from sleep_api.core.errors import (
    AnalysisError,
    analysis_error_handler,
    http_exception_handler,
    rate_limit_exceeded_handler,
)
from sleep_api.core.rate_limit import limiter
from sleep_api.services.llm_gateway import close_client, open_client
from prometheus_client import make_asgi_app

logger = logging.getLogger("sleep_api")

SERVICE_NAME = "Sleep Tracker API"
VERSION = "1.0.0"
CORS_METHODS = ["GET", "POST", "OPTIONS"]
CORS_HEADERS = ["Content-Type"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not settings.openai_api_key:
        # Requests fail with 500 until the key is configured; the process still starts
        logger.warning("OPENAI_API_KEY is missing; /api/analyze will answer 500")
    else:
        logger.info("OPENAI_API_KEY loaded (model %s)", settings.openai_model)
    logger.info(
        "Rate limit: %s requests per %s minutes",
        settings.rate_limit_max_requests,
        settings.rate_limit_window_minutes,
    )
    open_client(timeout=settings.openai_request_timeout_seconds)
    yield
    await close_client()


app = FastAPI(
    title=SERVICE_NAME,
    description="Sleep phase data in, LLM sleep-quality report out",
    version=VERSION,
    lifespan=lifespan,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(AnalysisError, analysis_error_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=500)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if getattr(settings, "enable_hsts", False):
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


app.add_middleware(SecurityHeadersMiddleware)
# Only allow-listed origins get Access-Control-Allow-Origin; others are blocked by the browser
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=False,
    allow_methods=CORS_METHODS,
    allow_headers=CORS_HEADERS,
)


class PreflightMiddleware(BaseHTTPMiddleware):
    """Every OPTIONS request gets an empty 204 on any path, whatever the origin."""

    async def dispatch(self, request, call_next):
        if request.method != "OPTIONS":
            return await call_next(request)
        response = Response(status_code=204)
        origin = request.headers.get("origin")
        if origin in settings.cors_origin_list:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
        response.headers["Access-Control-Allow-Methods"] = ", ".join(CORS_METHODS)
        response.headers["Access-Control-Allow-Headers"] = ", ".join(CORS_HEADERS)
        return response


# Outermost: preflights never reach CORSMiddleware or the rate limiter
app.add_middleware(PreflightMiddleware)
app.include_router(analyze.router, prefix="/api")

metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


@app.get("/")
@limiter.exempt
def health(request: Request):
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": VERSION,
        "endpoints": {"analyze": "POST /api/analyze"},
    }
