"""
Scheduler initialization and management.

Keeps the leaderboard warm by re-running the refresh on a fixed interval
(DATA_REFRESH_INTERVAL_MINUTES). Disabled when the interval is 0.
"""

from __future__ import annotations

from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from core.logging import get_logger
from core.services import LeaderboardRefresher

from . import jobs

logger = get_logger("backend.scheduler")

REFRESH_JOB_ID = "refresh_leaderboard"


def build_scheduler(refresher: LeaderboardRefresher, interval_minutes: float) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        jobs.run_leaderboard_refresh_job,
        IntervalTrigger(minutes=interval_minutes),
        args=[refresher],
        id=REFRESH_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=60,
    )
    return scheduler


def start_scheduler(
    refresher: LeaderboardRefresher, interval_minutes: float
) -> Optional[AsyncIOScheduler]:
    """Start the refresh scheduler. Must be called from a running event loop."""
    if interval_minutes <= 0:
        logger.info("scheduler_disabled")
        return None
    scheduler = build_scheduler(refresher, interval_minutes)
    scheduler.start()
    logger.info("scheduler_started", jobs=len(scheduler.get_jobs()), interval_minutes=interval_minutes)
    return scheduler


def shutdown_scheduler(scheduler: Optional[AsyncIOScheduler]) -> None:
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("scheduler_stopped")
