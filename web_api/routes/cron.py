"""
Cron routes for externally scheduled jobs.

Endpoints:
- GET /api/cron/event-reminders - Run the hour-gated reminder tick

Authorized with the shared CRON_SECRET, sent either as
"Authorization: Bearer <secret>" or as "X-Cron-Secret: <secret>".
"""

import hmac
import logging

import sentry_sdk
from fastapi import APIRouter, HTTPException, Request

from core.config import get_cron_secret
from core.notifications import run_reminder_tick

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cron", tags=["cron"])


def is_authorized_cron_request(request: Request) -> bool:
    """Check the request carries the configured cron secret."""
    configured_secret = get_cron_secret()
    if not configured_secret:
        return False

    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        provided = auth_header[len("Bearer ") :]
    else:
        provided = request.headers.get("X-Cron-Secret", "")

    return hmac.compare_digest(provided.encode(), configured_secret.encode())


@router.get("/event-reminders")
async def event_reminders(request: Request) -> dict:
    """Send tomorrow's event reminders when called inside the daily window."""
    if not is_authorized_cron_request(request):
        raise HTTPException(401, "Unauthorized cron request")

    try:
        result = await run_reminder_tick()
    except Exception as e:
        logger.error(f"Error sending reminder notifications: {e}")
        sentry_sdk.capture_exception(e)
        raise HTTPException(500, "Failed to send reminder notifications")

    return result.to_dict()
