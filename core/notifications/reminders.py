"""
Reminder entry point.

Safe to call far more often than once a day: only a call whose civil hour
equals the configured reminder hour goes on to dispatch reminders. Dedup in
the notification log keeps repeated calls inside that hour from re-sending.
"""

import logging
from datetime import datetime

from core.notifications.dispatcher import get_dispatcher
from core.notifications.types import ReminderTickResult
from core.timezone import civil_hour, ensure_utc

logger = logging.getLogger(__name__)


def outside_window_reason(reminder_hour: int, tz_name: str) -> str:
    return f"Outside {reminder_hour:02d}:00 {tz_name} execution window"


async def run_reminder_tick(now: datetime | None = None) -> ReminderTickResult:
    """
    Run the reminder job if `now` falls inside the daily execution hour.

    Args:
        now: Reference instant (defaults to the dispatcher's clock)

    Returns:
        ReminderTickResult; skipped with a reason outside the window,
        otherwise carrying the aggregated ReminderSummary
    """
    dispatcher = get_dispatcher()
    settings = dispatcher.settings
    now = ensure_utc(now or dispatcher.clock())

    if civil_hour(now, settings.civil_timezone) != settings.reminder_hour:
        return ReminderTickResult(
            skipped=True,
            reason=outside_window_reason(
                settings.reminder_hour, settings.civil_timezone
            ),
        )

    summary = await dispatcher.dispatch_reminders(now)
    logger.info(f"Reminder tick complete: {summary.to_dict()}")
    return ReminderTickResult(skipped=False, summary=summary)
