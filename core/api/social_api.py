"""
Async client for the social media API.

Endpoints consumed:
    GET {base}/users             -> {"users": {userId: name}}
    GET {base}/users/{id}/posts  -> {"posts": [...]}

Every failure (transport error, timeout, non-2xx status, malformed body)
is logged and degraded to an empty result. Callers never see an exception.
"""

from typing import Any, Optional

import httpx

from core.exceptions import UpstreamError
from core.logging import get_logger

logger = get_logger("social_api")

DEFAULT_TIMEOUT_SECONDS = 10.0


class SocialMediaClient:
    """
    Bearer-authenticated client for the social media API.

    Example:
        async with SocialMediaClient(base_url, token) as client:
            users = await client.fetch_all_users()
            posts = await client.fetch_user_posts("1")
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not token:
            raise ValueError("Access token required")

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def __aenter__(self) -> "SocialMediaClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str) -> dict[str, Any]:
        """GET a path and return the decoded JSON object."""
        try:
            response = await self._client.get(path)
        except httpx.TimeoutException as e:
            raise UpstreamError(path, f"timed out after {self.timeout}s") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # InvalidURL covers user ids that cannot be placed in a URL path
            raise UpstreamError(path, str(e) or type(e).__name__) from e

        if response.is_error:
            raise UpstreamError(path, f"HTTP {response.status_code}", response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(path, "invalid JSON body", response.status_code) from e

        if not isinstance(data, dict):
            raise UpstreamError(path, "unexpected body shape", response.status_code)
        return data

    async def fetch_all_users(self) -> dict[str, str]:
        """Map of user id to display name; empty on any failure."""
        try:
            data = await self._get_json("/users")
        except UpstreamError as e:
            logger.error("fetch_users_failed", path=e.path, reason=e.reason, status=e.status_code)
            return {}

        users = data.get("users")
        if not isinstance(users, dict):
            logger.error("fetch_users_malformed", keys=sorted(data.keys()))
            return {}
        return {str(user_id): str(name) for user_id, name in users.items()}

    async def fetch_user_posts(self, user_id: str) -> list[Any]:
        """Posts authored by one user; empty on any failure."""
        path = f"/users/{user_id}/posts"
        try:
            data = await self._get_json(path)
        except UpstreamError as e:
            logger.error(
                "fetch_posts_failed",
                user_id=user_id,
                reason=e.reason,
                status=e.status_code,
            )
            return []

        posts = data.get("posts")
        if not isinstance(posts, list):
            logger.warning("fetch_posts_malformed", user_id=user_id)
            return []
        return posts


__all__ = ["SocialMediaClient", "DEFAULT_TIMEOUT_SECONDS"]
