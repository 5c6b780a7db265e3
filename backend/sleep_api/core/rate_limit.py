"""
Per-client rate limiting for the analysis API.
In-memory fixed window keyed by remote address (single instance, no Redis).
POST /api/analyze carries @limiter.limit explicitly: SlowAPIMiddleware cannot resolve
routes inside included routers on every FastAPI release. @limiter.exempt routes are not counted.
"""

from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

from sleep_api.config import settings


def create_limiter() -> Limiter:
    """Limiter applying settings.rate_limit (e.g. "30/15 minutes") to every non-exempt route."""
    return Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
        strategy="fixed-window",
        storage_uri="memory://",
    )


limiter = create_limiter()

