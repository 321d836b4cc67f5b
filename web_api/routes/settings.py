"""
Notification settings routes.

Endpoints:
- POST /api/settings/notifications - Toggle push notifications
- POST /api/settings/push-subscription - Store or clear the browser subscription
"""

import json
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from core.database import get_connection
from core.queries.members import (
    get_or_create_member,
    set_push_enabled,
    set_push_subscription,
)
from web_api.auth import get_current_user

router = APIRouter(prefix="/api/settings", tags=["settings"])


class NotificationToggle(BaseModel):
    enabled: bool


class PushSubscriptionUpdate(BaseModel):
    """Browser PushSubscription JSON, or null to unsubscribe."""

    subscription: dict[str, Any] | None = None


@router.post("/notifications")
async def update_notification_settings(
    body: NotificationToggle,
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    """Turn push notifications on or off for the current member."""
    async with get_connection() as conn:
        member = await get_or_create_member(
            conn, user["sub"], user["email"], user.get("name")
        )
        updated = await set_push_enabled(conn, member["member_id"], body.enabled)
        await conn.commit()

    if not updated:
        raise HTTPException(404, "Member not found")

    return {
        "success": True,
        "push_notifications_enabled": updated["push_notifications_enabled"],
    }


@router.post("/push-subscription")
async def update_push_subscription(
    body: PushSubscriptionUpdate,
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    """
    Store or clear the current member's push subscription.

    Push is enabled exactly when a subscription is stored.
    """
    if body.subscription is not None and not body.subscription.get("endpoint"):
        raise HTTPException(400, "subscription.endpoint is required")

    subscription_json = (
        json.dumps(body.subscription) if body.subscription is not None else None
    )

    async with get_connection() as conn:
        member = await get_or_create_member(
            conn, user["sub"], user["email"], user.get("name")
        )
        updated = await set_push_subscription(
            conn, member["member_id"], subscription_json
        )
        await conn.commit()

    if not updated:
        raise HTTPException(404, "Member not found")

    return {
        "success": True,
        "push_notifications_enabled": updated["push_notifications_enabled"],
    }
