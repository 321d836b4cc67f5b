"""
Event routes.

Endpoints:
- POST /api/events - Create an event and notify all members
- PATCH /api/events/{event_id} - Edit an upcoming event and notify all members

The event is persisted before notifications are dispatched; a failed
dispatch never fails the request.
"""

import logging
from datetime import datetime, timezone
from typing import Any

import sentry_sdk
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from core.database import get_connection, get_transaction
from core.notifications import (
    EventSnapshot,
    EventUpdateTrigger,
    NewEventTrigger,
    NotificationSummary,
    dispatch_event_update,
    dispatch_new_event,
)
from core.queries.events import create_event, get_event, update_event
from core.queries.members import get_or_create_member
from core.timezone import CivilTimeParseError, resolve_civil_instant
from web_api.auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/events", tags=["events"])

TITLE_MAX_LENGTH = 120
LOCATION_MAX_LENGTH = 150
DESCRIPTION_MAX_LENGTH = 4000


class EventRequest(BaseModel):
    """Schema for creating or editing an event.

    date and time are wall-clock values in the civil timezone.
    """

    title: str
    date: str
    time: str
    location: str
    description: str | None = None
    map_link: str | None = None


def _validate_event_request(body: EventRequest) -> EventSnapshot:
    """Normalize and validate request fields into a snapshot."""
    title = body.title.strip()
    location = body.location.strip()
    description = (body.description or "").strip()
    map_link = (body.map_link or "").strip() or None

    if not title:
        raise HTTPException(400, "title is required.")
    if len(title) > TITLE_MAX_LENGTH:
        raise HTTPException(400, f"title must be {TITLE_MAX_LENGTH} characters or fewer.")
    if not location:
        raise HTTPException(400, "location is required.")
    if len(location) > LOCATION_MAX_LENGTH:
        raise HTTPException(
            400, f"location must be {LOCATION_MAX_LENGTH} characters or fewer."
        )
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise HTTPException(
            400, f"description must be {DESCRIPTION_MAX_LENGTH} characters or fewer."
        )
    if map_link and not map_link.startswith(("http://", "https://")):
        raise HTTPException(400, "map_link must be an http(s) URL.")

    try:
        date_time = resolve_civil_instant(body.date, body.time)
    except CivilTimeParseError as e:
        raise HTTPException(400, str(e))

    return EventSnapshot(
        title=title,
        description=description,
        date_time=date_time,
        location=location,
        map_link=map_link,
    )


async def _current_member(user: dict) -> dict:
    async with get_connection() as conn:
        return await get_or_create_member(
            conn, user["sub"], user["email"], user.get("name")
        )


@router.post("", status_code=201)
async def create_event_route(
    body: EventRequest,
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    """Create an event, then email and push every member about it."""
    snapshot = _validate_event_request(body)
    member = await _current_member(user)

    async with get_transaction() as conn:
        event = await create_event(
            conn,
            title=snapshot.title,
            description=snapshot.description,
            date_time=snapshot.date_time,
            location=snapshot.location,
            map_link=snapshot.map_link,
            created_by=member["member_id"],
        )

    summary = NotificationSummary()
    try:
        summary = await dispatch_new_event(
            NewEventTrigger(event_id=event["event_id"], event=snapshot)
        )
    except Exception as e:
        logger.error(f"Error sending new event notifications: {e}")
        sentry_sdk.capture_exception(e)

    return {
        "success": True,
        "event_id": event["event_id"],
        "notifications": summary.to_dict(),
    }


@router.patch("/{event_id}")
async def update_event_route(
    event_id: int,
    body: EventRequest,
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    """
    Edit an upcoming event, then notify every member about what changed.

    Only the event's creator (or an admin) may edit it, and past events are
    read-only.
    """
    snapshot = _validate_event_request(body)

    async with get_connection() as conn:
        existing = await get_event(conn, event_id)
    if not existing:
        raise HTTPException(404, "Event not found")

    if existing["date_time"] < datetime.now(timezone.utc):
        raise HTTPException(403, "Past events cannot be edited")

    member = await _current_member(user)
    is_admin = user.get("role") == "admin"
    if existing["created_by"] != member["member_id"] and not is_admin:
        raise HTTPException(403, "Forbidden")

    previous = EventSnapshot.from_row(existing)
    async with get_transaction() as conn:
        await update_event(
            conn,
            event_id,
            title=snapshot.title,
            description=snapshot.description,
            date_time=snapshot.date_time,
            location=snapshot.location,
            map_link=snapshot.map_link,
        )

    summary = NotificationSummary()
    try:
        summary = await dispatch_event_update(
            EventUpdateTrigger(event_id=event_id, previous=previous, updated=snapshot)
        )
    except Exception as e:
        logger.error(f"Error sending event update notifications: {e}")
        sentry_sdk.capture_exception(e)

    return {
        "success": True,
        "event_id": event_id,
        "notifications": summary.to_dict(),
    }
