"""
Response caching for request handlers.

Memoizes a handler's JSON payload in the store under
``{logical_key}_{credential_fingerprint}`` with a TTL. On a hit the
handler is not invoked. On a miss the payload is written in a detached
task and returned to the caller without waiting for the write.
Cache faults never fail the request.
"""

import asyncio
import functools
import json
from collections.abc import Awaitable, Callable
from typing import Any, Optional

from starlette.requests import Request
from starlette.responses import Response

from core.cache.cache_keys import CacheKeys, credential_fingerprint
from core.cache.redis_client import RedisStore
from core.logging import get_logger

logger = get_logger("cache.decorators")

Handler = Callable[[], Awaitable[Any]]


class ResponseCache:
    """
    Memoizes handler output per credential.

    Usage:
        response_cache = ResponseCache(store, settings.access_token, default_ttl=60)
        payload = await response_cache.fetch("top_users", handler)
    """

    def __init__(self, store: RedisStore, credential: str, default_ttl: int = 60):
        self.store = store
        self.fingerprint = credential_fingerprint(credential)
        self.default_ttl = default_ttl
        self._pending: set[asyncio.Task] = set()

    def cache_key(self, logical_key: str) -> str:
        return CacheKeys.response_key(logical_key, self.fingerprint)

    async def fetch(self, logical_key: str, handler: Handler, ttl: Optional[int] = None) -> Any:
        """Return the cached payload, or run the handler and cache what it emits."""
        ttl = ttl or self.default_ttl
        try:
            cache_key = self.cache_key(logical_key)
            if self.store.is_enabled:
                cached = await self.store.get(cache_key)
                if cached is not None:
                    logger.debug("cache_hit", key=cache_key)
                    return json.loads(cached)
            logger.debug("cache_miss", key=cache_key)
        except Exception as e:
            logger.warning("cache_lookup_failed", key=logical_key, error=str(e))
            return await handler()

        result = await handler()

        # Error responses are sent as-is and never memoized
        if isinstance(result, Response):
            return result

        try:
            self._schedule_write(cache_key, json.dumps(result), ttl)
        except (TypeError, ValueError) as e:
            logger.warning("cache_serialize_failed", key=cache_key, error=str(e))
        return result

    def _schedule_write(self, cache_key: str, payload: str, ttl: int) -> None:
        if not self.store.is_enabled:
            return
        task = asyncio.create_task(self._write(cache_key, payload, ttl))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self, cache_key: str, payload: str, ttl: int) -> None:
        try:
            if await self.store.set_with_expiry(cache_key, payload, ttl):
                logger.debug("cache_stored", key=cache_key, ttl=ttl)
        except Exception as e:
            logger.warning("cache_store_failed", key=cache_key, error=str(e))

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    async def drain(self, timeout: float = 5.0) -> None:
        """Wait (bounded) for outstanding cache writes."""
        if not self._pending:
            return
        _, not_done = await asyncio.wait(set(self._pending), timeout=timeout)
        if not_done:
            logger.warning("cache_writes_abandoned", count=len(not_done))


def cache_response(logical_key: str, ttl: Optional[int] = None) -> Callable:
    """
    Decorator for caching a FastAPI endpoint's JSON payload.

    The endpoint must accept ``request: Request``; the ``ResponseCache``
    is read from ``request.app.state.response_cache``.

    Usage:
        @router.get("/users")
        @cache_response(CacheKeys.TOP_USERS)
        async def top_users(request: Request):
            ...
    """

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            request: Optional[Request] = kwargs.get("request")
            response_cache: Optional[ResponseCache] = (
                getattr(request.app.state, "response_cache", None) if request is not None else None
            )
            if response_cache is None:
                return await func(*args, **kwargs)
            return await response_cache.fetch(
                logical_key, lambda: func(*args, **kwargs), ttl=ttl
            )

        return wrapper

    return decorator


__all__ = ["ResponseCache", "cache_response"]
