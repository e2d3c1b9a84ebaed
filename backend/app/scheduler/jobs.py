"""
Background job functions for the internal scheduler.
"""

from __future__ import annotations

from core.logging import get_logger
from core.services import LeaderboardRefresher

logger = get_logger("backend.scheduler.jobs")


async def run_leaderboard_refresh_job(refresher: LeaderboardRefresher) -> int:
    """Recompute the leaderboard. Failures are logged, never raised to the scheduler."""
    try:
        counts = await refresher.refresh()
    except Exception as e:
        logger.exception("leaderboard_refresh_job_failed", error=str(e))
        return 0
    logger.info("leaderboard_refresh_job_complete", users=len(counts))
    return len(counts)
