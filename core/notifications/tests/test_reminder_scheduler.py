"""Tests for the APScheduler reminder job."""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio

from core.config import NotificationSettings
from core.notifications.scheduler import (
    REMINDER_JOB_ID,
    _execute_reminder_tick,
    get_reminder_interval,
    init_scheduler,
    shutdown_scheduler,
)
from core.notifications.types import ReminderTickResult


@pytest_asyncio.fixture(autouse=True)
async def stop_scheduler():
    yield
    shutdown_scheduler()


class TestSchedulerLifecycle:
    def test_not_scheduled_before_init(self):
        assert get_reminder_interval() is None

    @pytest.mark.asyncio
    async def test_init_adds_interval_job(self):
        scheduler = init_scheduler(NotificationSettings(reminder_interval_minutes=15))

        assert scheduler.running
        assert scheduler.get_job(REMINDER_JOB_ID) is not None
        assert get_reminder_interval() == timedelta(minutes=15)

    @pytest.mark.asyncio
    async def test_init_is_idempotent(self):
        first = init_scheduler(NotificationSettings())
        second = init_scheduler(NotificationSettings(reminder_interval_minutes=5))

        assert first is second
        assert len(first.get_jobs()) == 1

    @pytest.mark.asyncio
    async def test_shutdown_clears_job(self):
        init_scheduler(NotificationSettings())
        shutdown_scheduler()

        assert get_reminder_interval() is None


class TestExecuteReminderTick:
    @pytest.mark.asyncio
    async def test_runs_tick(self):
        with patch(
            "core.notifications.reminders.run_reminder_tick",
            new_callable=AsyncMock,
            return_value=ReminderTickResult(skipped=True, reason="Outside"),
        ) as mock_tick:
            await _execute_reminder_tick()

        mock_tick.assert_awaited_once_with()

    @pytest.mark.asyncio
    async def test_tick_errors_are_reported_not_raised(self):
        error = RuntimeError("database down")
        with (
            patch(
                "core.notifications.reminders.run_reminder_tick",
                new_callable=AsyncMock,
                side_effect=error,
            ),
            patch("core.notifications.scheduler.sentry_sdk") as mock_sentry,
        ):
            await _execute_reminder_tick()

        mock_sentry.capture_exception.assert_called_once_with(error)
