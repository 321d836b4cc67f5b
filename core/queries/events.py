"""Database queries for events."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import events
from ..timezone import ensure_utc


def _event_from_row(row) -> dict[str, Any]:
    event = dict(row)
    # SQLite hands back naive datetimes; everything is stored as UTC
    for key in ("date_time", "created_at", "updated_at"):
        if isinstance(event.get(key), datetime):
            event[key] = ensure_utc(event[key])
    return event


async def create_event(
    conn: AsyncConnection,
    title: str,
    date_time: datetime,
    location: str,
    description: str = "",
    map_link: str | None = None,
    created_by: int | None = None,
) -> dict[str, Any]:
    """
    Create an event record.

    Returns:
        The created event
    """
    result = await conn.execute(
        insert(events)
        .values(
            title=title,
            description=description or "",
            date_time=ensure_utc(date_time),
            location=location,
            map_link=map_link,
            created_by=created_by,
        )
        .returning(events)
    )
    return _event_from_row(result.mappings().one())


async def get_event(
    conn: AsyncConnection,
    event_id: int,
) -> dict[str, Any] | None:
    """Get a single event by ID."""
    result = await conn.execute(select(events).where(events.c.event_id == event_id))
    row = result.mappings().first()
    return _event_from_row(row) if row else None


async def update_event(
    conn: AsyncConnection,
    event_id: int,
    **updates: Any,
) -> dict[str, Any] | None:
    """Update an event and return the updated record."""
    if "date_time" in updates:
        updates["date_time"] = ensure_utc(updates["date_time"])
    updates["updated_at"] = datetime.now(timezone.utc)
    result = await conn.execute(
        update(events)
        .where(events.c.event_id == event_id)
        .values(**updates)
        .returning(events)
    )
    row = result.mappings().first()
    return _event_from_row(row) if row else None


async def list_events_from(
    conn: AsyncConnection,
    since: datetime,
) -> list[dict[str, Any]]:
    """Get events whose instant is at or after `since`, soonest first."""
    result = await conn.execute(
        select(events)
        .where(events.c.date_time >= ensure_utc(since))
        .order_by(events.c.date_time)
    )
    return [_event_from_row(row) for row in result.mappings()]
