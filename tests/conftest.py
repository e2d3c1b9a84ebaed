"""
Pytest fixtures for the leaderboard service tests.

Redis is replaced by fakeredis and the social media API by an
httpx.MockTransport stub that counts the requests it serves.
"""

import re
from collections import Counter

import fakeredis
import httpx
import pytest

from core.api.social_api import SocialMediaClient
from core.cache import RedisStore, StoreStatus
from core.config import Settings

API_BASE_URL = "https://social.example.test"
ACCESS_TOKEN = "test-token-abc123"

_POSTS_PATH = re.compile(r"^/users/([^/]+)/posts$")


class StubSocialApi:
    """In-memory stand-in for the social media API."""

    def __init__(self, users: dict | None = None, posts: dict | None = None):
        self.users = dict(users or {})
        self.posts = dict(posts or {})
        self.fail_users = False
        self.fail_posts_for: set[str] = set()
        self.calls: Counter = Counter()
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls[path] += 1
        self.requests.append(request)

        if path == "/users":
            if self.fail_users:
                return httpx.Response(503, json={"error": "unavailable"})
            return httpx.Response(200, json={"users": self.users})

        match = _POSTS_PATH.match(path)
        if match:
            user_id = match.group(1)
            if user_id in self.fail_posts_for:
                return httpx.Response(500, json={"error": "boom"})
            return httpx.Response(200, json={"posts": self.posts.get(user_id, [])})

        return httpx.Response(404, json={"error": "not found"})

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def make_settings(**overrides) -> Settings:
    values = {
        "SOCIAL_MEDIA_API_BASE_URL": API_BASE_URL,
        "ACCESS_TOKEN": ACCESS_TOKEN,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def upstream() -> StubSocialApi:
    """Alice has 3 posts, Bob has 1."""
    return StubSocialApi(
        users={"1": "Alice", "2": "Bob"},
        posts={"1": [{"id": 1}, {"id": 2}, {"id": 3}], "2": [{"id": 4}]},
    )


@pytest.fixture
def social_client(upstream: StubSocialApi) -> SocialMediaClient:
    return SocialMediaClient(API_BASE_URL, ACCESS_TOKEN, transport=upstream.transport())


@pytest.fixture
def redis_server() -> fakeredis.FakeServer:
    return fakeredis.FakeServer()


@pytest.fixture
def fake_redis(redis_server):
    return fakeredis.FakeAsyncRedis(server=redis_server, decode_responses=True)


@pytest.fixture
def sync_redis(redis_server):
    """Synchronous view of the same fake server, for assertions."""
    return fakeredis.FakeRedis(server=redis_server, decode_responses=True)


@pytest.fixture
def store(fake_redis) -> RedisStore:
    return RedisStore(fake_redis)


@pytest.fixture
def disabled_store(fake_redis) -> RedisStore:
    return RedisStore(fake_redis, StoreStatus.disabled())
