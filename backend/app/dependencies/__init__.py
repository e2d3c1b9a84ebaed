"""
FastAPI dependency injection module.

Provides the per-app instances created by create_app:
- Cache store
- Leaderboard service
"""

from fastapi import Request

from core.cache import RedisStore
from core.services import TopUsersService


def get_store(request: Request) -> RedisStore:
    """Get the app's cache store."""
    return request.app.state.store


def get_top_users_service(request: Request) -> TopUsersService:
    """Get TopUsersService instance."""
    return request.app.state.top_users_service


__all__ = [
    "get_store",
    "get_top_users_service",
]
