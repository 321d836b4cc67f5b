"""Query layer for database operations using SQLAlchemy Core."""

from .events import create_event, get_event, list_events_from, update_event
from .members import (
    clear_push_subscription,
    create_member,
    get_member_by_subject,
    get_or_create_member,
    list_members,
    list_push_members,
    set_push_enabled,
    set_push_subscription,
)
from .notification_log import (
    DuplicateNotificationError,
    has_sent,
    list_entries,
    record_sent,
)

__all__ = [
    # Members
    "list_members",
    "list_push_members",
    "get_member_by_subject",
    "create_member",
    "get_or_create_member",
    "set_push_enabled",
    "set_push_subscription",
    "clear_push_subscription",
    # Events
    "create_event",
    "get_event",
    "update_event",
    "list_events_from",
    # Notification log
    "DuplicateNotificationError",
    "has_sent",
    "record_sent",
    "list_entries",
]
