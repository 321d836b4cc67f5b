"""
Notification dispatch engine for event emails and browser push.

Public API:
    init_dispatcher(...) - Build the process-wide dispatcher at startup
    dispatch_new_event(trigger) - Notify members about a new event
    dispatch_event_update(trigger) - Notify members about event changes
    dispatch_reminders(now=None) - Remind members about tomorrow's events
    run_reminder_tick(now=None) - Hour-gated reminder entry point

Scheduling:
    init_scheduler() / shutdown_scheduler() - Periodic reminder ticks
"""

from .dispatcher import (
    DispatcherNotInitializedError,
    NotificationDispatcher,
    dispatch_event_update,
    dispatch_new_event,
    dispatch_reminders,
    get_dispatcher,
    init_dispatcher,
    reset_dispatcher,
)
from .reminders import run_reminder_tick
from .scheduler import init_scheduler, shutdown_scheduler
from .types import (
    EventSnapshot,
    EventUpdateTrigger,
    NewEventTrigger,
    NotificationSummary,
    ReminderSummary,
    ReminderTickResult,
    ReminderTrigger,
)

__all__ = [
    # Dispatch
    "NotificationDispatcher",
    "DispatcherNotInitializedError",
    "init_dispatcher",
    "get_dispatcher",
    "reset_dispatcher",
    "dispatch_new_event",
    "dispatch_event_update",
    "dispatch_reminders",
    "run_reminder_tick",
    # Scheduling
    "init_scheduler",
    "shutdown_scheduler",
    # Types
    "EventSnapshot",
    "NewEventTrigger",
    "EventUpdateTrigger",
    "ReminderTrigger",
    "NotificationSummary",
    "ReminderSummary",
    "ReminderTickResult",
]
