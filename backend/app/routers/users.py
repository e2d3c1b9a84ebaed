"""
Top users leaderboard endpoint.
"""

from fastapi import APIRouter, Depends, Request

from core.cache import CacheKeys, cache_response
from core.logging import get_logger
from core.services import TopUsersService

from ..dependencies import get_top_users_service
from ..error_handlers import internal_error_response
from ..schemas import ErrorResponse, TopUserResponse

logger = get_logger("api.users")

router = APIRouter(tags=["users"])


@router.get(
    "/users",
    response_model=list[TopUserResponse],
    responses={500: {"model": ErrorResponse}},
)
@cache_response(CacheKeys.TOP_USERS)
async def top_users(
    request: Request,
    service: TopUsersService = Depends(get_top_users_service),
):
    """Return the top users by post count, most active first."""
    try:
        return await service.top_users(limit=CacheKeys.TOP_N)
    except Exception as e:
        logger.exception("top_users_failed", error=str(e))
        return internal_error_response(e)
