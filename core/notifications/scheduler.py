"""
APScheduler-based trigger for the daily reminder run.

A single interval job calls run_reminder_tick every few minutes. The tick
itself only acts during the configured civil hour, so the interval just has
to be shorter than an hour. Jobs are kept in memory: the job is re-added on
every start and missed ticks carry no state worth replaying.
"""

import logging
from datetime import timedelta

import sentry_sdk
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from core.config import NotificationSettings

logger = logging.getLogger(__name__)

REMINDER_JOB_ID = "event_reminders"

_scheduler: AsyncIOScheduler | None = None


# =============================================================================
# Scheduler initialization and shutdown
# =============================================================================


def init_scheduler(settings: NotificationSettings | None = None) -> AsyncIOScheduler:
    """
    Initialize and start the APScheduler.

    Call this during app startup (in FastAPI lifespan), after
    init_dispatcher().
    """
    global _scheduler

    if _scheduler is not None:
        return _scheduler

    settings = settings or NotificationSettings.from_env()

    _scheduler = AsyncIOScheduler(
        job_defaults={
            "coalesce": True,  # Combine missed runs into one
            "max_instances": 1,
            "misfire_grace_time": 300,
        },
    )
    _scheduler.add_job(
        _execute_reminder_tick,
        trigger="interval",
        minutes=settings.reminder_interval_minutes,
        id=REMINDER_JOB_ID,
        replace_existing=True,
    )
    _scheduler.start()
    logger.info(
        f"Reminder scheduler started (every {settings.reminder_interval_minutes} min, "
        f"active at {settings.reminder_hour:02d}:00 {settings.civil_timezone})"
    )
    return _scheduler


def shutdown_scheduler() -> None:
    """
    Shutdown the scheduler gracefully.

    Call this during app shutdown.
    """
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=True)
        _scheduler = None
        logger.info("Reminder scheduler stopped")


def get_reminder_interval() -> timedelta | None:
    """Interval of the running reminder job, or None when not scheduled."""
    if not _scheduler:
        return None
    job = _scheduler.get_job(REMINDER_JOB_ID)
    return job.trigger.interval if job else None


# =============================================================================
# Job execution
# =============================================================================


async def _execute_reminder_tick() -> None:
    """Run one reminder tick. Called by APScheduler."""
    from core.notifications.reminders import run_reminder_tick

    try:
        result = await run_reminder_tick()
    except Exception as e:
        logger.error(f"Scheduled reminder tick failed: {e}")
        sentry_sdk.capture_exception(e)
        return

    if result.skipped:
        logger.debug(f"Reminder tick skipped: {result.reason}")
