"""
APScheduler job definitions for automated scraping.

Two independent cron jobs (UTC):
- Daily full sweep over all active sources
- Weekly staleness cleanup that closes grants untouched for 14+ days
"""

from typing import Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from .config.settings import ScraperSettings
from .core.errors import SweepInProgressError
from .orchestrator import ScraperService

logger = structlog.get_logger(__name__)

DAILY_SWEEP_JOB_ID = "daily-grant-scraping"
WEEKLY_CLEANUP_JOB_ID = "weekly-stale-grant-cleanup"


async def run_daily_sweep(service: ScraperService) -> None:
    """Scheduled full sweep; skips the fire if a sweep is already running."""
    logger.info("scheduled_sweep_started")
    try:
        result = await service.scrape_all_sources()
    except SweepInProgressError:
        logger.warning("scheduled_sweep_skipped", reason="sweep_in_progress")
        return

    logger.info("scheduled_sweep_finished", **result.to_dict())


async def run_weekly_cleanup(service: ScraperService) -> None:
    affected = await service.deactivate_stale_grants()
    logger.info("scheduled_cleanup_finished", affected=affected)


def create_scheduler(
    service: ScraperService,
    settings: Optional[ScraperSettings] = None,
    scheduler: Optional[AsyncIOScheduler] = None,
) -> AsyncIOScheduler:
    """
    Register the sweep and cleanup jobs.

    Args:
        service: Orchestrator the jobs call into
        settings: Schedule settings (defaults: 02:00 daily, Sunday 03:00)
        scheduler: Existing scheduler to add jobs to

    Returns:
        Scheduler with both jobs registered (not started)
    """
    settings = settings or service.settings
    scheduler = scheduler or AsyncIOScheduler(timezone="UTC")

    scheduler.add_job(
        run_daily_sweep,
        CronTrigger(
            hour=settings.daily_sweep_hour,
            minute=settings.daily_sweep_minute,
            timezone="UTC",
        ),
        args=[service],
        id=DAILY_SWEEP_JOB_ID,
        name="Daily grant scraping",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.add_job(
        run_weekly_cleanup,
        CronTrigger(
            day_of_week=settings.cleanup_day_of_week,
            hour=settings.cleanup_hour,
            minute=0,
            timezone="UTC",
        ),
        args=[service],
        id=WEEKLY_CLEANUP_JOB_ID,
        name="Weekly stale grant cleanup",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    logger.info(
        "scheduler_configured",
        daily_sweep=f"{settings.daily_sweep_hour:02d}:{settings.daily_sweep_minute:02d} UTC",
        weekly_cleanup=f"{settings.cleanup_day_of_week} {settings.cleanup_hour:02d}:00 UTC",
    )
    return scheduler
