"""Queries for the notification log (the dedup ledger)."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import and_, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncConnection

from ..enums import NotificationChannel, NotificationType
from ..tables import notification_log


class DuplicateNotificationError(Exception):
    """A log entry for this (member, event, type, channel) already exists."""

    def __init__(
        self,
        member_id: int,
        event_id: int,
        notification_type: NotificationType,
        channel: NotificationChannel,
    ):
        self.member_id = member_id
        self.event_id = event_id
        self.notification_type = notification_type
        self.channel = channel
        super().__init__(
            f"{notification_type.value}/{channel.value} already recorded "
            f"for member {member_id}, event {event_id}"
        )


async def has_sent(
    conn: AsyncConnection,
    member_id: int,
    event_id: int,
    notification_type: NotificationType,
    channel: NotificationChannel,
) -> bool:
    """Check if this exact notification was already delivered."""
    result = await conn.execute(
        select(notification_log.c.log_id)
        .where(
            and_(
                notification_log.c.member_id == member_id,
                notification_log.c.event_id == event_id,
                notification_log.c.notification_type == notification_type,
                notification_log.c.channel == channel,
            )
        )
        .limit(1)
    )
    return result.first() is not None


async def record_sent(
    conn: AsyncConnection,
    member_id: int,
    event_id: int,
    notification_type: NotificationType,
    channel: NotificationChannel,
    sent_at: datetime | None = None,
) -> None:
    """
    Append a log entry for a successful send.

    Commits on its own; pass a connection from get_connection().

    Raises:
        DuplicateNotificationError: If the dedup tuple is already recorded
    """
    stmt = insert(notification_log).values(
        member_id=member_id,
        event_id=event_id,
        notification_type=notification_type,
        channel=channel,
        sent_at=sent_at or datetime.now(timezone.utc),
    )
    try:
        await conn.execute(stmt)
        await conn.commit()
    except IntegrityError as e:
        await conn.rollback()
        raise DuplicateNotificationError(
            member_id, event_id, notification_type, channel
        ) from e


async def list_entries(
    conn: AsyncConnection,
    event_id: int | None = None,
) -> list[dict[str, Any]]:
    """List log entries, optionally for one event."""
    query = select(notification_log).order_by(notification_log.c.log_id)
    if event_id is not None:
        query = query.where(notification_log.c.event_id == event_id)
    result = await conn.execute(query)
    return [dict(row) for row in result.mappings()]
