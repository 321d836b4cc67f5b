"""
Trigger payloads and result summaries for the dispatch engine.

Each trigger is a closed, fully-typed variant built at the system boundary
(API route or reminder tick) before it reaches the dispatcher.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from core.enums import NotificationType
from core.timezone import ensure_utc


@dataclass(frozen=True)
class EventSnapshot:
    """The user-visible fields of an event at one point in time."""

    title: str
    description: str
    date_time: datetime
    location: str
    map_link: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "EventSnapshot":
        return cls(
            title=row["title"],
            description=row.get("description") or "",
            date_time=ensure_utc(row["date_time"]),
            location=row["location"],
            map_link=row.get("map_link"),
        )


@dataclass(frozen=True)
class NewEventTrigger:
    event_id: int
    event: EventSnapshot

    notification_type = NotificationType.new_event


@dataclass(frozen=True)
class EventUpdateTrigger:
    event_id: int
    previous: EventSnapshot
    updated: EventSnapshot

    notification_type = NotificationType.event_update

    @property
    def event(self) -> EventSnapshot:
        return self.updated


@dataclass(frozen=True)
class ReminderTrigger:
    event_id: int
    event: EventSnapshot

    notification_type = NotificationType.reminder


Trigger = NewEventTrigger | EventUpdateTrigger | ReminderTrigger


@dataclass
class NotificationSummary:
    """Email-channel outcome counts for one trigger run."""

    total_users: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "totalUsers": self.total_users,
            "sent": self.sent,
            "failed": self.failed,
            "skipped": self.skipped,
        }


@dataclass
class ReminderSummary(NotificationSummary):
    """Aggregate of every per-event reminder run in one tick."""

    events_considered: int = 0
    events_targeted: int = 0

    def add(self, summary: NotificationSummary) -> None:
        self.sent += summary.sent
        self.failed += summary.failed
        self.skipped += summary.skipped

    def to_dict(self) -> dict[str, int]:
        return {
            **super().to_dict(),
            "eventsConsidered": self.events_considered,
            "eventsTargeted": self.events_targeted,
        }


@dataclass
class ReminderTickResult:
    """Outcome of one invocation of the reminder entry point."""

    skipped: bool
    reason: str | None = None
    summary: ReminderSummary | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"ok": True, "skipped": self.skipped}
        if self.reason:
            data["reason"] = self.reason
        if self.summary is not None:
            data["summary"] = self.summary.to_dict()
        return data
