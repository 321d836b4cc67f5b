"""URL builder utilities for notification content."""

from core.config import get_frontend_url


def build_event_path(event_id: int) -> str:
    """Site-relative path to an event's detail page (used in push payloads)."""
    return f"/events/{event_id}"


def build_event_url(event_id: int) -> str:
    """Absolute URL to an event's detail page."""
    base = get_frontend_url()
    return f"{base}{build_event_path(event_id)}"
