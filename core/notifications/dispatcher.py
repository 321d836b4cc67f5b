"""
Notification dispatcher - fans each trigger out to every recipient on both channels.

For one trigger the flow is: resolve email recipients, build content once,
send to all recipients concurrently, record each success in the notification
log, then (if push is configured) do the same for push subscribers. The
returned summary counts the email channel only; push outcomes are logged.

Dedup is best-effort: the log is checked before each send and written after
it succeeds, so two concurrent triggers for the same event can both send.
"""

import asyncio
import enum
import logging
from collections import Counter
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import TypeVar

import sentry_sdk

from core.config import NotificationSettings
from core.database import get_connection
from core.enums import NotificationChannel, NotificationType
from core.notifications.channels.email import (
    EmailMessage,
    EmailProvider,
    EmailSendResult,
    create_email_provider,
)
from core.notifications.channels.push import (
    PushPayload,
    PushSendResult,
    VapidConfig,
    WebPushSender,
)
from core.notifications.content import (
    RenderedMessage,
    build_event_update_content,
    build_event_update_push,
    build_new_event_content,
    build_new_event_push,
    build_reminder_content,
    build_reminder_push,
)
from core.notifications.recipients import get_email_recipients, get_push_recipients
from core.notifications.types import (
    EventSnapshot,
    EventUpdateTrigger,
    NewEventTrigger,
    NotificationSummary,
    ReminderSummary,
    ReminderTrigger,
    Trigger,
)
from core.queries.events import list_events_from
from core.queries.members import clear_push_subscription, list_members
from core.queries.notification_log import (
    DuplicateNotificationError,
    has_sent,
    record_sent,
)
from core.timezone import civil_date_key, ensure_utc, tomorrow_civil_date_key

logger = logging.getLogger(__name__)

T = TypeVar("T")
Clock = Callable[[], datetime]


class DeliveryOutcome(str, enum.Enum):
    sent = "sent"
    failed = "failed"
    skipped = "skipped"
    expired = "expired"


class DispatcherNotInitializedError(RuntimeError):
    """Raised when dispatching before init_dispatcher() was called."""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class NotificationDispatcher:
    """
    Coordinates delivery of one trigger across email and push.

    Providers, settings and the clock are injected once at construction.
    """

    def __init__(
        self,
        email_provider: EmailProvider,
        push_sender: WebPushSender,
        settings: NotificationSettings | None = None,
        clock: Clock = utc_now,
    ):
        self.email_provider = email_provider
        self.push_sender = push_sender
        self.settings = settings or NotificationSettings()
        self.clock = clock

    # -------------------------------------------------------------------------
    # Public triggers
    # -------------------------------------------------------------------------

    async def dispatch_new_event(self, trigger: NewEventTrigger) -> NotificationSummary:
        """Notify every member about a newly created event."""
        return await self._dispatch(trigger)

    async def dispatch_event_update(
        self, trigger: EventUpdateTrigger
    ) -> NotificationSummary:
        """Notify every member about changes to an event."""
        return await self._dispatch(trigger)

    async def dispatch_reminders(self, now: datetime | None = None) -> ReminderSummary:
        """
        Send reminders for every event that falls on tomorrow's civil date.

        Events are selected by instant >= now, then by civil date key. Each
        qualifying event is dispatched as its own trigger, one after another,
        and the per-event summaries are summed.

        Args:
            now: Reference instant (defaults to the injected clock)

        Returns:
            ReminderSummary with total_users equal to the member count
        """
        now = ensure_utc(now or self.clock())
        tz_name = self.settings.civil_timezone
        tomorrow = tomorrow_civil_date_key(now, tz_name)

        async with get_connection() as conn:
            upcoming = await list_events_from(conn, now)
            members = await list_members(conn)

        targets = [
            event
            for event in upcoming
            if civil_date_key(event["date_time"], tz_name) == tomorrow
        ]
        summary = ReminderSummary(
            total_users=len(members),
            events_considered=len(upcoming),
            events_targeted=len(targets),
        )
        logger.info(
            f"Reminder run for {tomorrow}: {len(targets)} of {len(upcoming)} "
            "upcoming events targeted"
        )

        for event in targets:
            trigger = ReminderTrigger(
                event_id=event["event_id"],
                event=EventSnapshot.from_row(event),
            )
            summary.add(await self._dispatch(trigger))

        return summary

    # -------------------------------------------------------------------------
    # Orchestration
    # -------------------------------------------------------------------------

    def _render(self, trigger: Trigger) -> tuple[RenderedMessage, PushPayload]:
        settings = self.settings
        if isinstance(trigger, EventUpdateTrigger):
            return (
                build_event_update_content(
                    trigger.event_id, trigger.previous, trigger.updated, settings
                ),
                build_event_update_push(
                    trigger.event_id, trigger.previous, trigger.updated, settings
                ),
            )
        if isinstance(trigger, ReminderTrigger):
            return (
                build_reminder_content(trigger.event_id, trigger.event, settings),
                build_reminder_push(trigger.event_id, trigger.event, settings),
            )
        return (
            build_new_event_content(trigger.event_id, trigger.event, settings),
            build_new_event_push(trigger.event_id, trigger.event, settings),
        )

    async def _dispatch(self, trigger: Trigger) -> NotificationSummary:
        members = await get_email_recipients()
        summary = NotificationSummary(total_users=len(members))
        if not members:
            return summary

        content, push_payload = self._render(trigger)

        outcomes = await asyncio.gather(
            *(self._deliver_email(member, trigger, content) for member in members)
        )
        counts = Counter(outcomes)
        summary.sent = counts[DeliveryOutcome.sent]
        summary.failed = counts[DeliveryOutcome.failed]
        summary.skipped = counts[DeliveryOutcome.skipped]

        logger.info(
            f"{trigger.notification_type.value} email for event {trigger.event_id}: "
            f"{summary.sent} sent, {summary.failed} failed, "
            f"{summary.skipped} skipped of {summary.total_users}"
        )

        await self._dispatch_push(trigger, push_payload)
        return summary

    async def _with_timeout(self, send: Awaitable[T], on_timeout: T) -> T:
        try:
            return await asyncio.wait_for(send, self.settings.send_timeout_seconds)
        except asyncio.TimeoutError:
            return on_timeout

    async def _record(
        self,
        member_id: int,
        event_id: int,
        notification_type: NotificationType,
        channel: NotificationChannel,
    ) -> None:
        async with get_connection() as conn:
            try:
                await record_sent(
                    conn,
                    member_id,
                    event_id,
                    notification_type,
                    channel,
                    sent_at=self.clock(),
                )
            except DuplicateNotificationError as e:
                # A concurrent trigger got there first; the send still happened
                logger.info(f"Notification already recorded: {e}")

    # -------------------------------------------------------------------------
    # Email channel
    # -------------------------------------------------------------------------

    async def _deliver_email(
        self,
        member: dict,
        trigger: Trigger,
        content: RenderedMessage,
    ) -> DeliveryOutcome:
        member_id = member["member_id"]
        notification_type = trigger.notification_type
        channel = NotificationChannel.email

        try:
            async with get_connection() as conn:
                if await has_sent(
                    conn, member_id, trigger.event_id, notification_type, channel
                ):
                    return DeliveryOutcome.skipped

            message = EmailMessage(
                to=member["email"],
                subject=content.subject,
                html=content.html_body,
                text=content.text_body,
            )
            result = await self._with_timeout(
                self.email_provider.send(message),
                EmailSendResult.failed(
                    self.email_provider.name.value,
                    f"Timed out after {self.settings.send_timeout_seconds}s",
                ),
            )

            if result.success:
                await self._record(
                    member_id, trigger.event_id, notification_type, channel
                )
                return DeliveryOutcome.sent
            if result.skipped:
                return DeliveryOutcome.skipped

            logger.warning(
                f"Email to member {member_id} for event {trigger.event_id} "
                f"failed via {result.provider}: {result.error}"
            )
            return DeliveryOutcome.failed

        except Exception as e:
            logger.error(f"Email delivery to member {member_id} crashed: {e}")
            sentry_sdk.capture_exception(e)
            return DeliveryOutcome.failed

    # -------------------------------------------------------------------------
    # Push channel
    # -------------------------------------------------------------------------

    async def _dispatch_push(self, trigger: Trigger, payload: PushPayload) -> None:
        """Best-effort push fan-out. Never raises."""
        if not self.push_sender.is_configured:
            return

        try:
            subscribers = await get_push_recipients()
            notification_type = trigger.notification_type
            pending = []
            async with get_connection() as conn:
                for member in subscribers:
                    if not await has_sent(
                        conn,
                        member["member_id"],
                        trigger.event_id,
                        notification_type,
                        NotificationChannel.push,
                    ):
                        pending.append(member)

            outcomes = await asyncio.gather(
                *(self._deliver_push(member, trigger, payload) for member in pending),
                return_exceptions=True,
            )
        except Exception as e:
            logger.error(f"Push dispatch for event {trigger.event_id} failed: {e}")
            sentry_sdk.capture_exception(e)
            return

        counts = Counter()
        for member, outcome in zip(pending, outcomes):
            if isinstance(outcome, Exception):
                logger.error(
                    f"Push delivery to member {member['member_id']} crashed: {outcome}"
                )
                sentry_sdk.capture_exception(outcome)
                counts[DeliveryOutcome.failed] += 1
            else:
                counts[outcome] += 1

        if pending:
            logger.info(
                f"{trigger.notification_type.value} push for event "
                f"{trigger.event_id}: "
                + ", ".join(f"{counts[o]} {o.value}" for o in DeliveryOutcome)
            )

    async def _deliver_push(
        self,
        member: dict,
        trigger: Trigger,
        payload: PushPayload,
    ) -> DeliveryOutcome:
        member_id = member["member_id"]
        result = await self._with_timeout(
            self.push_sender.send(member["push_subscription"], payload),
            PushSendResult(
                success=False,
                error=f"Timed out after {self.settings.send_timeout_seconds}s",
            ),
        )

        if result.expired:
            async with get_connection() as conn:
                await clear_push_subscription(conn, member_id, at=self.clock())
                await conn.commit()
            logger.info(f"Cleared expired push subscription for member {member_id}")
            return DeliveryOutcome.expired

        if result.success:
            await self._record(
                member_id,
                trigger.event_id,
                trigger.notification_type,
                NotificationChannel.push,
            )
            return DeliveryOutcome.sent
        if result.skipped:
            return DeliveryOutcome.skipped

        logger.warning(f"Push to member {member_id} failed: {result.error}")
        return DeliveryOutcome.failed


# =============================================================================
# Process-wide dispatcher
# =============================================================================

_dispatcher: NotificationDispatcher | None = None


def init_dispatcher(
    settings: NotificationSettings | None = None,
    email_provider: EmailProvider | None = None,
    push_sender: WebPushSender | None = None,
    clock: Clock = utc_now,
) -> NotificationDispatcher:
    """
    Build the dispatcher once at startup.

    Providers default to the configured email provider and a push sender
    built from VAPID_* settings.
    """
    global _dispatcher
    settings = settings or NotificationSettings.from_env()
    if email_provider is None:
        email_provider = create_email_provider(settings.email_provider)
    if push_sender is None:
        push_sender = WebPushSender(VapidConfig.from_env())
        if not push_sender.is_configured:
            logger.info("Push delivery not configured (VAPID_* not set)")

    _dispatcher = NotificationDispatcher(
        email_provider=email_provider,
        push_sender=push_sender,
        settings=settings,
        clock=clock,
    )
    return _dispatcher


def get_dispatcher() -> NotificationDispatcher:
    if _dispatcher is None:
        raise DispatcherNotInitializedError(
            "Notification dispatcher not initialized; call init_dispatcher() first"
        )
    return _dispatcher


def reset_dispatcher() -> None:
    """Drop the process-wide dispatcher (shutdown and tests)."""
    global _dispatcher
    _dispatcher = None


async def dispatch_new_event(trigger: NewEventTrigger) -> NotificationSummary:
    return await get_dispatcher().dispatch_new_event(trigger)


async def dispatch_event_update(trigger: EventUpdateTrigger) -> NotificationSummary:
    return await get_dispatcher().dispatch_event_update(trigger)


async def dispatch_reminders(now: datetime | None = None) -> ReminderSummary:
    return await get_dispatcher().dispatch_reminders(now)
