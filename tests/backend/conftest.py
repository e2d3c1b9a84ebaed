from collections.abc import Callable, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from backend.app.main import create_app
from core.api.social_api import SocialMediaClient
from core.cache import RedisStore

AppFactory = Callable[..., FastAPI]


@pytest.fixture
def app_factory(settings, upstream) -> AppFactory:
    """Build an app wired to the stub API; pass ``store`` and settings overrides."""

    def build(store: RedisStore, settings_override=None) -> FastAPI:
        app_settings = settings_override or settings
        client = SocialMediaClient(
            app_settings.social_media_api_base_url,
            app_settings.access_token,
            transport=upstream.transport(),
        )
        return create_app(app_settings, store=store, client=client)

    return build


@pytest.fixture
def app(app_factory, store) -> FastAPI:
    return app_factory(store)


@pytest.fixture
def test_client(app) -> Iterator[TestClient]:
    with TestClient(app) as client:
        yield client


@pytest.fixture
def disabled_client(app_factory, disabled_store) -> Iterator[TestClient]:
    with TestClient(app_factory(disabled_store)) as client:
        yield client


@pytest.fixture
def drain_cache_writes() -> Callable[[TestClient], None]:
    """Wait for fire-and-forget cache writes scheduled by the last request."""

    def drain(client: TestClient) -> None:
        client.portal.call(client.app.state.response_cache.drain)

    return drain
