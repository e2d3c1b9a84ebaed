"""
Core services with caching and business logic.
"""

from core.services.leaderboard_service import (
    UNKNOWN_USER_NAME,
    LeaderboardRefresher,
    TopUsersService,
    rank_counts,
)

__all__ = [
    "LeaderboardRefresher",
    "TopUsersService",
    "rank_counts",
    "UNKNOWN_USER_NAME",
]
