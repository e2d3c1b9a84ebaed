"""
FastAPI application entry point.

Uses structured logging from core.logging module.
The cache store and API client are created per app and may be injected
(tests pass an in-memory Redis and a stubbed transport).
"""

import asyncio
import resource
import sys
import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Depends, FastAPI

from core.api.social_api import SocialMediaClient
from core.cache import RedisStore, ResponseCache
from core.config import Settings, get_settings
from core.logging import RequestLoggingMiddleware, configure_logging, get_logger
from core.services import LeaderboardRefresher, TopUsersService

from .dependencies import get_store
from .dependencies.rate_limit import enforce_rate_limit
from .error_handlers import register_exception_handlers
from .middleware.request_id import RequestIDMiddleware
from .routers import users as users_router
from .scheduler import shutdown_scheduler, start_scheduler
from .schemas import HealthResponse

logger = get_logger("api")

STORE_CLOSE_TIMEOUT_SECONDS = 5.0


def _max_rss_bytes() -> int:
    rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # Linux reports kilobytes, macOS bytes
    return rss if sys.platform == "darwin" else rss * 1024


async def _shutdown_services(app: FastAPI) -> None:
    """
    Stop background work and close connections.

    Every step runs even if an earlier one fails, so the store is always
    closed. Any failure sets ``app.state.cleanup_failed``.
    """
    state = app.state

    def failed(step: str, error: Exception) -> None:
        state.cleanup_failed = True
        logger.error(
            "shutdown_cleanup_failed", step=step, error=str(error), error_type=type(error).__name__
        )

    try:
        shutdown_scheduler(state.scheduler)
    except Exception as e:
        failed("scheduler", e)

    steps: list[tuple[str, Callable[[], Awaitable[Any]]]] = [
        ("cache_writes", lambda: state.response_cache.drain(timeout=STORE_CLOSE_TIMEOUT_SECONDS)),
        ("social_client", state.social_client.aclose),
        (
            "store",
            lambda: asyncio.wait_for(state.store.close(), timeout=STORE_CLOSE_TIMEOUT_SECONDS),
        ),
    ]
    for step, close in steps:
        try:
            await close()
        except Exception as e:
            failed(step, e)

    if not state.cleanup_failed:
        logger.info("app_shutdown_complete")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings: Settings = app.state.settings
    app.state.started_at = time.monotonic()
    logger.info("app_startup", app_name=settings.app_name)

    await app.state.store.connect()
    app.state.scheduler = start_scheduler(
        app.state.refresher, settings.data_refresh_interval_minutes
    )

    yield

    logger.info("app_shutdown")
    await _shutdown_services(app)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RedisStore] = None,
    client: Optional[SocialMediaClient] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(level="DEBUG" if settings.debug else "INFO", debug=settings.debug)

    store = store or RedisStore.from_settings(settings)
    client = client or SocialMediaClient(
        settings.social_media_api_base_url,
        settings.access_token,
        timeout=settings.upstream_timeout_seconds,
    )
    refresher = LeaderboardRefresher(client, store)

    app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)

    app.state.settings = settings
    app.state.store = store
    app.state.social_client = client
    app.state.refresher = refresher
    app.state.top_users_service = TopUsersService(client, store, refresher)
    app.state.response_cache = ResponseCache(
        store, settings.access_token, default_ttl=settings.cache_ttl_seconds
    )
    app.state.scheduler = None
    app.state.started_at = time.monotonic()
    app.state.cleanup_failed = False

    # Last added runs outermost; request logging must see the X-Request-ID value
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Exception handlers
    register_exception_handlers(app)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health_check(store: RedisStore = Depends(get_store)):
        """Liveness probe with cache status, memory and uptime."""
        return {
            "status": "ok",
            "server_time": datetime.now(timezone.utc).isoformat(),
            "redis_status": store.health_status(),
            "memory_usage": {"max_rss_bytes": _max_rss_bytes()},
            "uptime": round(time.monotonic() - app.state.started_at, 3),
        }

    app.include_router(
        users_router.router,
        dependencies=[Depends(enforce_rate_limit)],
    )

    return app
