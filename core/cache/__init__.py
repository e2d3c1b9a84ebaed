"""
Redis Caching Layer.

Provides Redis-based caching for:
- Memoized API responses, namespaced per access token
- The user post-count leaderboard (sorted set)
- Graceful degradation when Redis is unavailable

Usage:
    from core.cache import RedisStore, ResponseCache, cache_response, CacheKeys

    store = RedisStore.from_settings(settings)
    await store.connect()

    @cache_response(CacheKeys.TOP_USERS)
    async def top_users(request: Request):
        return await compute()
"""

from core.cache.cache_keys import CacheKeys, credential_fingerprint
from core.cache.decorators import ResponseCache, cache_response
from core.cache.redis_client import RedisStore, StoreStatus

__all__ = [
    "RedisStore",
    "StoreStatus",
    "ResponseCache",
    "cache_response",
    "CacheKeys",
    "credential_fingerprint",
]
