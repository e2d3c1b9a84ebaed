"""
Rate limiting hook.

Requests are never throttled; the dependency only records the caller so
a limiter can be attached here without touching the routers.
"""

from fastapi import Request

from core.logging import get_logger

logger = get_logger("api.rate_limit")


def _client_identifier(request: Request) -> str:
    # Handle reverse proxy headers if present
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def enforce_rate_limit(request: Request) -> None:
    """No-op rate limit check for public endpoints."""
    logger.debug("rate_limit_check", identifier=_client_identifier(request), path=request.url.path)
