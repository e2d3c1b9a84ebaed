"""
Tests for the leaderboard refresher and top users service.
"""

from unittest.mock import AsyncMock

import pytest

from core.cache import CacheKeys
from core.services import LeaderboardRefresher, TopUsersService, rank_counts


@pytest.fixture
def refresher(social_client, store) -> LeaderboardRefresher:
    return LeaderboardRefresher(social_client, store)


@pytest.fixture
def service(social_client, store, refresher) -> TopUsersService:
    return TopUsersService(social_client, store, refresher)


class TestRankCounts:
    """Tests for in-memory ranking."""

    def test_descending_with_limit(self):
        counts = {"a": 1, "b": 9, "c": 4, "d": 0}

        assert rank_counts(counts, 2) == [("b", 9), ("c", 4)]

    def test_ties_keep_insertion_order(self):
        assert rank_counts({"x": 2, "y": 2, "z": 3}, 5) == [("z", 3), ("x", 2), ("y", 2)]


class TestLeaderboardRefresher:
    """Tests for LeaderboardRefresher.refresh."""

    async def test_writes_post_counts(self, refresher, sync_redis):
        counts = await refresher.refresh()

        assert counts == {"1": 3, "2": 1}
        assert sync_redis.zrevrange(CacheKeys.USER_POST_COUNTS, 0, -1, withscores=True) == [
            ("1", 3.0),
            ("2", 1.0),
        ]

    async def test_failed_user_list_is_noop(self, refresher, upstream, sync_redis):
        sync_redis.zadd(CacheKeys.USER_POST_COUNTS, {"9": 12})
        upstream.fail_users = True

        assert await refresher.refresh() == {}
        assert sync_redis.zrange(CacheKeys.USER_POST_COUNTS, 0, -1, withscores=True) == [("9", 12.0)]
        assert upstream.calls["/users/1/posts"] == 0

    async def test_failed_posts_score_zero(self, refresher, upstream, sync_redis):
        upstream.fail_posts_for.add("1")

        counts = await refresher.refresh()

        assert counts == {"1": 0, "2": 1}
        assert sync_redis.zscore(CacheKeys.USER_POST_COUNTS, "1") == 0.0

    async def test_unaddressable_user_id_scores_zero(self, refresher, upstream, sync_redis):
        upstream.users["bad\x01id"] = "Mallory"

        counts = await refresher.refresh()

        assert counts == {"1": 3, "2": 1, "bad\x01id": 0}
        assert sync_redis.zscore(CacheKeys.USER_POST_COUNTS, "1") == 3.0
        assert sync_redis.zscore(CacheKeys.USER_POST_COUNTS, "bad\x01id") == 0.0

    async def test_unexpected_error_for_one_user_scores_zero(
        self, social_client, store, monkeypatch
    ):
        fetch_user_posts = social_client.fetch_user_posts

        async def flaky(user_id):
            if user_id == "1":
                raise RuntimeError("decoder bug")
            return await fetch_user_posts(user_id)

        monkeypatch.setattr(social_client, "fetch_user_posts", flaky)

        counts = await LeaderboardRefresher(social_client, store).refresh()

        assert counts == {"1": 0, "2": 1}

    async def test_refresh_overwrites_previous_scores(self, refresher, upstream, sync_redis):
        await refresher.refresh()
        upstream.posts["2"] = [{"id": n} for n in range(6)]

        await refresher.refresh()

        assert sync_redis.zscore(CacheKeys.USER_POST_COUNTS, "2") == 6.0
        assert sync_redis.zcard(CacheKeys.USER_POST_COUNTS) == 2

    async def test_scores_written_in_one_batch(self, social_client, store):
        store.sorted_set_add_many = AsyncMock(return_value=True)
        store.sorted_set_add = AsyncMock(return_value=True)

        await LeaderboardRefresher(social_client, store).refresh()

        store.sorted_set_add_many.assert_awaited_once_with(
            CacheKeys.USER_POST_COUNTS, {"1": 3, "2": 1}
        )
        store.sorted_set_add.assert_not_awaited()

    async def test_fetches_posts_for_every_user(self, social_client, store, upstream):
        upstream.users = {str(n): f"user{n}" for n in range(25)}

        counts = await LeaderboardRefresher(social_client, store, max_concurrency=3).refresh()

        assert len(counts) == 25
        assert all(upstream.calls[f"/users/{n}/posts"] == 1 for n in range(25))


class TestTopUsersService:
    """Tests for TopUsersService.top_users."""

    async def test_alice_and_bob(self, service):
        assert await service.top_users() == [
            {"user_id": "1", "name": "Alice", "post_count": 3},
            {"user_id": "2", "name": "Bob", "post_count": 1},
        ]

    async def test_cold_start_refreshes_exactly_once(self, service, refresher, monkeypatch):
        spy = AsyncMock(wraps=refresher.refresh)
        monkeypatch.setattr(refresher, "refresh", spy)

        await service.top_users()
        await service.top_users()

        assert spy.await_count == 1

    async def test_warm_leaderboard_skips_refresh(self, service, upstream, sync_redis):
        sync_redis.zadd(CacheKeys.USER_POST_COUNTS, {"1": 10, "2": 20})

        result = await service.top_users()

        assert [row["user_id"] for row in result] == ["2", "1"]
        assert [row["post_count"] for row in result] == [20, 10]
        assert upstream.calls["/users/1/posts"] == 0

    async def test_unknown_user_name(self, service, sync_redis):
        sync_redis.zadd(CacheKeys.USER_POST_COUNTS, {"99": 4, "1": 3})

        result = await service.top_users()

        assert result[0] == {"user_id": "99", "name": "Unknown", "post_count": 4}
        assert result[1]["name"] == "Alice"

    async def test_at_most_five_entries(self, service, upstream):
        upstream.users = {str(n): f"user{n}" for n in range(8)}
        upstream.posts = {str(n): [{}] * n for n in range(8)}

        result = await service.top_users()

        assert [row["user_id"] for row in result] == ["7", "6", "5", "4", "3"]
        assert all(row["post_count"] >= 0 for row in result)

    async def test_disabled_store_computes_fresh(self, social_client, disabled_store, upstream):
        refresher = LeaderboardRefresher(social_client, disabled_store)
        service = TopUsersService(social_client, disabled_store, refresher)

        first = await service.top_users()
        posts_calls = upstream.calls["/users/1/posts"]
        second = await service.top_users()

        assert first == second == [
            {"user_id": "1", "name": "Alice", "post_count": 3},
            {"user_id": "2", "name": "Bob", "post_count": 1},
        ]
        assert upstream.calls["/users/1/posts"] == posts_calls + 1

    async def test_upstream_down_on_cold_start_returns_empty(self, service, upstream):
        upstream.fail_users = True

        assert await service.top_users() == []

    async def test_unaddressable_user_id_does_not_fail_request(self, service, upstream):
        upstream.users["bad\x01id"] = "Mallory"

        result = await service.top_users()

        assert result == [
            {"user_id": "1", "name": "Alice", "post_count": 3},
            {"user_id": "2", "name": "Bob", "post_count": 1},
            {"user_id": "bad\x01id", "name": "Mallory", "post_count": 0},
        ]

    async def test_upstream_down_with_warm_leaderboard(self, service, upstream, sync_redis):
        sync_redis.zadd(CacheKeys.USER_POST_COUNTS, {"1": 3})
        upstream.fail_users = True

        assert await service.top_users() == [{"user_id": "1", "name": "Unknown", "post_count": 3}]
