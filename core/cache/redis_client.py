"""
Async Redis store adapter.

Provides the cache store used by the response cache and the leaderboard:
- TTL-expiring string entries (JSON payloads)
- Sorted-set writes (single and pipelined) and score-ordered reads
- Graceful degradation: a connection-level failure disables the store for
  the rest of the process and every later call returns an empty result
"""

import threading
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any, Optional, TypeVar

import redis.asyncio as redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError, RedisError, TimeoutError

from core.logging import get_logger

if TYPE_CHECKING:
    from core.config import Settings

logger = get_logger("cache")

T = TypeVar("T")

CONNECTION_ERRORS = (ConnectionError, TimeoutError)

CONNECT_TIMEOUT_SECONDS = 5
SOCKET_TIMEOUT_SECONDS = 5
MAX_RETRIES = 3


class StoreStatus:
    """
    Process-wide store degradation state.

    The only transition is enabled -> disabled. Inject a pre-disabled
    instance to run the service without a cache.
    """

    def __init__(self, enabled: bool = True):
        self._enabled = enabled
        self._reason: Optional[str] = None if enabled else "disabled at startup"
        self._lock = threading.Lock()

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def disable(self, reason: str) -> bool:
        """Disable the store. Returns True only for the call that flipped it."""
        with self._lock:
            if not self._enabled:
                return False
            self._enabled = False
            self._reason = reason
            return True

    @classmethod
    def disabled(cls) -> "StoreStatus":
        return cls(enabled=False)


class RedisStore:
    """
    Redis-backed key/value and sorted-set store.

    Usage:
        store = RedisStore.from_settings(settings)
        await store.connect()

        await store.set_with_expiry("top_users_a1b2c3", payload, 60)
        await store.sorted_set_add_many("user_post_counts", {"1": 3, "2": 1})
        top = await store.sorted_set_reverse_range("user_post_counts", 0, 4)
    """

    def __init__(self, client: Optional[redis.Redis], status: Optional[StoreStatus] = None):
        self._client = client
        self.status = status or StoreStatus(enabled=client is not None)

    @classmethod
    def from_settings(cls, settings: "Settings", status: Optional[StoreStatus] = None) -> "RedisStore":
        """Create a store with connect timeout and exponential-backoff retries."""
        client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=settings.redis_password,
            socket_connect_timeout=CONNECT_TIMEOUT_SECONDS,
            socket_timeout=SOCKET_TIMEOUT_SECONDS,
            retry=Retry(ExponentialBackoff(cap=2.0, base=0.1), MAX_RETRIES),
            retry_on_error=[ConnectionError, TimeoutError],
            decode_responses=True,
        )
        return cls(client, status)

    @property
    def is_enabled(self) -> bool:
        return self._client is not None and self.status.is_enabled

    def health_status(self) -> str:
        return "connected" if self.is_enabled else "disabled"

    def _disable(self, operation: str, error: Exception) -> None:
        if self.status.disable(f"{operation}: {error}"):
            logger.error("redis_disabled", operation=operation, error=str(error))

    async def _run(
        self,
        operation: str,
        call: Callable[[redis.Redis], Awaitable[T]],
        default: T,
        **log_fields: Any,
    ) -> T:
        if not self.is_enabled:
            return default
        try:
            return await call(self._client)
        except CONNECTION_ERRORS as e:
            self._disable(operation, e)
            return default
        except RedisError as e:
            logger.warning("redis_operation_error", operation=operation, error=str(e), **log_fields)
            return default

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def connect(self) -> bool:
        """Ping the server. A failure disables the store for the process lifetime."""
        ok = await self.ping()
        if ok:
            logger.info("redis_connected")
        else:
            logger.warning("redis_unavailable", reason=self.status.reason)
        return ok

    async def ping(self) -> bool:
        return bool(await self._run("ping", lambda c: c.ping(), False))

    async def close(self) -> None:
        """Close the underlying connection pool."""
        if self._client is None:
            return
        await self._client.aclose()
        logger.info("redis_closed")

    # =========================================================================
    # Key Operations
    # =========================================================================

    async def get(self, key: str) -> Optional[str]:
        """Get a value, or None if missing, expired, or the store is disabled."""
        return await self._run("get", lambda c: c.get(key), None, key=key)

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> bool:
        async def call(c: redis.Redis) -> bool:
            await c.setex(key, ttl_seconds, value)
            return True

        return await self._run("setex", call, False, key=key)

    # =========================================================================
    # Sorted Set Operations
    # =========================================================================

    async def sorted_set_add(self, name: str, score: float, member: str) -> bool:
        """Add or overwrite one member's score."""
        async def call(c: redis.Redis) -> bool:
            await c.zadd(name, {member: score})
            return True

        return await self._run("zadd", call, False, key=name)

    async def sorted_set_add_many(self, name: str, scores: Mapping[str, float]) -> bool:
        """Pipeline one ZADD per member and flush them in a single round trip."""
        if not scores:
            return True

        async def call(c: redis.Redis) -> bool:
            async with c.pipeline(transaction=False) as pipe:
                for member, score in scores.items():
                    pipe.zadd(name, {member: score})
                await pipe.execute()
            return True

        return await self._run("zadd_pipeline", call, False, key=name, size=len(scores))

    async def sorted_set_reverse_range(
        self,
        name: str,
        start: int,
        stop: int,
        with_scores: bool = True,
    ) -> list[tuple[str, Optional[float]]]:
        """Members ordered by descending score, as (member, score) pairs."""
        async def call(c: redis.Redis) -> list[tuple[str, Optional[float]]]:
            if with_scores:
                rows = await c.zrevrange(name, start, stop, withscores=True)
                return [(str(member), float(score)) for member, score in rows]
            members = await c.zrevrange(name, start, stop)
            return [(str(member), None) for member in members]

        return await self._run("zrevrange", call, [], key=name)


__all__ = ["RedisStore", "StoreStatus", "CONNECTION_ERRORS"]
