"""
Leaderboard Service.

Ranks users by post count:
- LeaderboardRefresher recomputes every user's post count from the API
  and writes the scores to the ``user_post_counts`` sorted set
- TopUsersService serves the top N, refreshing once on a cold cache

Concurrent cold-start requests may each run a refresh. ZADD overwrites
per member, so the duplicate work converges on the same scores.
"""

import asyncio
from collections.abc import Mapping
from typing import Any

from core.api.social_api import SocialMediaClient
from core.cache.cache_keys import CacheKeys
from core.cache.redis_client import RedisStore
from core.logging import get_logger, log_timing

logger = get_logger("leaderboard")

UNKNOWN_USER_NAME = "Unknown"
DEFAULT_MAX_CONCURRENCY = 10


def rank_counts(counts: Mapping[str, int], limit: int) -> list[tuple[str, int]]:
    """Top ``limit`` (user_id, count) pairs by descending count, stable on ties."""
    ordered = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return ordered[:limit]


class LeaderboardRefresher:
    """
    Recomputes post counts for all users.

    A failed user list makes the refresh a no-op; a failed post list
    scores that user 0. Nothing is raised to the caller.
    """

    def __init__(
        self,
        client: SocialMediaClient,
        store: RedisStore,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ):
        self.client = client
        self.store = store
        self.max_concurrency = max_concurrency

    async def _count_posts(self, user_id: str, semaphore: asyncio.Semaphore) -> tuple[str, int]:
        """Post count for one user; any failure scores 0 instead of aborting the refresh."""
        async with semaphore:
            try:
                posts = await self.client.fetch_user_posts(user_id)
            except Exception as e:
                logger.error("count_posts_failed", user_id=user_id, error=str(e))
                return user_id, 0
        return user_id, len(posts)

    @log_timing("leaderboard_refresh")
    async def refresh(self) -> dict[str, int]:
        """
        Fetch users and their posts, then store every count in one pipelined batch.

        Returns:
            Mapping of user id to post count (empty if the user list was unavailable)
        """
        users = await self.client.fetch_all_users()
        if not users:
            logger.warning("leaderboard_refresh_skipped", reason="no users returned")
            return {}

        semaphore = asyncio.Semaphore(self.max_concurrency)
        results = await asyncio.gather(
            *(self._count_posts(user_id, semaphore) for user_id in users)
        )
        counts = dict(results)

        stored = await self.store.sorted_set_add_many(CacheKeys.USER_POST_COUNTS, counts)
        logger.info("leaderboard_refreshed", users=len(counts), stored=stored)
        return counts


class TopUsersService:
    """
    Serves the leaderboard joined with display names.

    Usage:
        service = TopUsersService(client, store, LeaderboardRefresher(client, store))
        top = await service.top_users()
        # [{"user_id": "1", "name": "Alice", "post_count": 3}, ...]
    """

    def __init__(
        self,
        client: SocialMediaClient,
        store: RedisStore,
        refresher: LeaderboardRefresher,
    ):
        self.client = client
        self.store = store
        self.refresher = refresher

    async def _read_ranking(self, limit: int) -> list[tuple[str, int]]:
        if not self.store.is_enabled:
            return []
        rows = await self.store.sorted_set_reverse_range(
            CacheKeys.USER_POST_COUNTS, 0, limit - 1, with_scores=True
        )
        return [(member, max(0, int(score or 0))) for member, score in rows]

    async def top_users(self, limit: int = CacheKeys.TOP_N) -> list[dict[str, Any]]:
        ranking = await self._read_ranking(limit)

        if not ranking:
            logger.info("leaderboard_cold", store=self.store.health_status())
            counts = await self.refresher.refresh()
            ranking = await self._read_ranking(limit)
            # Store disabled: rank the freshly computed counts directly
            if not ranking and counts:
                ranking = rank_counts(counts, limit)

        names = await self.client.fetch_all_users()
        return [
            {
                "user_id": user_id,
                "name": names.get(user_id, UNKNOWN_USER_NAME),
                "post_count": count,
            }
            for user_id, count in ranking
        ]


__all__ = [
    "LeaderboardRefresher",
    "TopUsersService",
    "rank_counts",
    "UNKNOWN_USER_NAME",
]
