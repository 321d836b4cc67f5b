"""Tests for reminder selection and the hourly-gated reminder tick."""

from datetime import datetime, timezone

import pytest
import pytest_asyncio

from core.database import get_connection
from core.enums import NotificationType
from core.notifications.dispatcher import (
    DispatcherNotInitializedError,
    init_dispatcher,
)
from core.notifications.reminders import outside_window_reason, run_reminder_tick
from core.queries.notification_log import list_entries


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


NOW = utc(2026, 6, 10, 10, 0)  # 12:00 in Oslo, tomorrow is 2026-06-11


@pytest_asyncio.fixture
async def members(make_member):
    return [await make_member("alice", push=True), await make_member("bob")]


@pytest_asyncio.fixture
async def events(make_event):
    """Events around NOW; three of them fall on tomorrow's Oslo date."""
    return {
        "past": await make_event(utc(2026, 6, 9, 16, 0), title="Yesterday"),
        "later_today": await make_event(utc(2026, 6, 10, 16, 0), title="Tonight"),
        "after_midnight": await make_event(utc(2026, 6, 10, 22, 30), title="Late"),
        "tomorrow": await make_event(utc(2026, 6, 11, 8, 0), title="Brunch"),
        "tomorrow_night": await make_event(utc(2026, 6, 11, 21, 30), title="Night"),
        "day_after": await make_event(utc(2026, 6, 12, 8, 0), title="Friday"),
    }


@pytest.fixture
def installed(settings, email_provider, push_sender):
    return init_dispatcher(
        settings=settings,
        email_provider=email_provider,
        push_sender=push_sender,
        clock=lambda: NOW,
    )


class TestDispatchReminders:
    @pytest.mark.asyncio
    async def test_targets_only_tomorrows_civil_date(
        self, dispatcher, email_provider, members, events
    ):
        summary = await dispatcher.dispatch_reminders(NOW)

        assert summary.events_considered == 5
        assert summary.events_targeted == 3
        assert summary.total_users == 2
        assert summary.sent == 6
        subjects = sorted({m.subject for m in email_provider.sent})
        assert subjects == [
            "Reminder: Brunch is tomorrow",
            "Reminder: Late is tomorrow",
            "Reminder: Night is tomorrow",
        ]

    @pytest.mark.asyncio
    async def test_logs_reminder_rows_per_event(
        self, dispatcher, members, events
    ):
        await dispatcher.dispatch_reminders(NOW)

        async with get_connection() as conn:
            rows = await list_entries(conn, event_id=events["tomorrow"]["event_id"])

        assert {r["notification_type"] for r in rows} == {NotificationType.reminder}
        assert sorted(r["channel"].value for r in rows) == ["email", "email", "push"]

    @pytest.mark.asyncio
    async def test_second_run_sends_nothing_new(
        self, dispatcher, email_provider, members, events
    ):
        await dispatcher.dispatch_reminders(NOW)
        summary = await dispatcher.dispatch_reminders(NOW)

        assert summary.sent == 0
        assert summary.skipped == 6
        assert len(email_provider.sent) == 6

    @pytest.mark.asyncio
    async def test_nothing_tomorrow(self, dispatcher, email_provider, members):
        summary = await dispatcher.dispatch_reminders(NOW)

        assert summary.to_dict() == {
            "totalUsers": 2,
            "sent": 0,
            "failed": 0,
            "skipped": 0,
            "eventsConsidered": 0,
            "eventsTargeted": 0,
        }
        assert email_provider.sent == []

    @pytest.mark.asyncio
    async def test_defaults_to_injected_clock(
        self, dispatcher, email_provider, members, events
    ):
        summary = await dispatcher.dispatch_reminders()
        assert summary.events_targeted == 3


class TestRunReminderTick:
    def test_outside_window_reason(self):
        assert (
            outside_window_reason(9, "Europe/Oslo")
            == "Outside 09:00 Europe/Oslo execution window"
        )

    @pytest.mark.asyncio
    async def test_requires_initialized_dispatcher(self):
        with pytest.raises(DispatcherNotInitializedError):
            await run_reminder_tick(NOW)

    @pytest.mark.asyncio
    async def test_skips_outside_reminder_hour(
        self, installed, email_provider, members, events
    ):
        result = await run_reminder_tick(utc(2026, 6, 10, 9, 0))  # 11:00 Oslo

        assert result.to_dict() == {
            "ok": True,
            "skipped": True,
            "reason": "Outside 12:00 Europe/Oslo execution window",
        }
        assert email_provider.sent == []

    @pytest.mark.asyncio
    async def test_runs_inside_reminder_hour(self, installed, members, events):
        result = await run_reminder_tick(utc(2026, 6, 10, 10, 45))

        assert result.skipped is False
        data = result.to_dict()
        assert data["ok"] is True
        assert "reason" not in data
        assert data["summary"]["sent"] == 6
        assert data["summary"]["eventsTargeted"] == 3

    @pytest.mark.asyncio
    async def test_uses_dispatcher_clock_by_default(self, installed, members, events):
        result = await run_reminder_tick()
        assert result.skipped is False

    @pytest.mark.asyncio
    async def test_repeated_ticks_in_window_do_not_resend(
        self, installed, email_provider, members, events
    ):
        await run_reminder_tick(NOW)
        result = await run_reminder_tick(utc(2026, 6, 10, 10, 30))

        assert result.summary.sent == 0
        assert len(email_provider.sent) == 6

    @pytest.mark.asyncio
    async def test_winter_hour_follows_civil_offset(self, installed, members):
        """12:00 Oslo in January is 11:00 UTC, not 10:00."""
        assert (await run_reminder_tick(utc(2026, 1, 15, 10, 0))).skipped is True
        assert (await run_reminder_tick(utc(2026, 1, 15, 11, 0))).skipped is False
