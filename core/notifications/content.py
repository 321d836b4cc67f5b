"""
Pure builders that turn trigger payloads into rendered messages.

One builder per trigger type produces the email subject plus HTML and plain
text bodies; a matching push builder produces the short single-line payload.
All user-supplied strings are HTML-escaped before they reach an HTML body.
"""

import html
from dataclasses import dataclass

from core.config import NotificationSettings
from core.notifications.channels.push import PushPayload
from core.notifications.templates import get_message, get_placeholder
from core.notifications.types import EventSnapshot
from core.notifications.urls import build_event_path, build_event_url
from core.timezone import format_event_datetime


@dataclass(frozen=True)
class RenderedMessage:
    """Email content shared by every recipient of one trigger."""

    subject: str
    html_body: str
    text_body: str


@dataclass(frozen=True)
class ChangedField:
    label: str
    previous: str
    updated: str


def escape_html(value: str) -> str:
    """Escape &, <, >, " and ' for interpolation into HTML."""
    return html.escape(value, quote=True)


def _normalize_text(value: str | None) -> str:
    return (value or "").strip()


def _normalize_nullable(value: str | None) -> str | None:
    return _normalize_text(value) or None


def _base_context(settings: NotificationSettings, event_id: int) -> dict:
    return {
        "app_name": settings.app_name,
        "timezone": settings.civil_timezone,
        "event_url": build_event_url(event_id),
    }


def _event_context(
    event_id: int,
    event: EventSnapshot,
    settings: NotificationSettings,
    escape: bool,
) -> dict:
    """Template variables for an event, escaped for HTML when asked."""
    description = _normalize_text(event.description) or get_placeholder(
        "no_description"
    )
    fields = {
        "title": event.title,
        "location": event.location,
        "description": description,
    }
    if escape:
        fields = {key: escape_html(value) for key, value in fields.items()}
    return {
        **_base_context(settings, event_id),
        **fields,
        "date_time": format_event_datetime(event.date_time, settings.civil_timezone),
    }


def build_new_event_content(
    event_id: int,
    event: EventSnapshot,
    settings: NotificationSettings | None = None,
) -> RenderedMessage:
    """Email announcing a newly created event."""
    settings = settings or NotificationSettings()
    text_context = _event_context(event_id, event, settings, escape=False)
    html_context = _event_context(event_id, event, settings, escape=True)

    return RenderedMessage(
        subject=get_message("new_event", "email_subject", text_context),
        html_body=get_message("new_event", "email_html", html_context),
        text_body=get_message("new_event", "email_text", text_context),
    )


def get_changed_fields(
    previous: EventSnapshot,
    updated: EventSnapshot,
    settings: NotificationSettings | None = None,
) -> list[ChangedField]:
    """
    Diff two snapshots of an event.

    Fields are compared in a fixed order: title, description, date & time,
    location, map link. Text fields compare trimmed; the date compares the
    absolute instant, not its formatted text.

    Returns:
        One ChangedField per differing field, in comparison order
    """
    settings = settings or NotificationSettings()
    tz_name = settings.civil_timezone
    empty = get_placeholder("empty_field")
    no_link = get_placeholder("no_map_link")
    changes = []

    if _normalize_text(previous.title) != _normalize_text(updated.title):
        changes.append(ChangedField("Title", previous.title, updated.title))

    previous_description = _normalize_text(previous.description)
    updated_description = _normalize_text(updated.description)
    if previous_description != updated_description:
        changes.append(
            ChangedField(
                "Description",
                previous_description or empty,
                updated_description or empty,
            )
        )

    if previous.date_time.timestamp() != updated.date_time.timestamp():
        changes.append(
            ChangedField(
                "Date & time",
                f"{format_event_datetime(previous.date_time, tz_name)} ({tz_name})",
                f"{format_event_datetime(updated.date_time, tz_name)} ({tz_name})",
            )
        )

    if _normalize_text(previous.location) != _normalize_text(updated.location):
        changes.append(ChangedField("Location", previous.location, updated.location))

    previous_link = _normalize_nullable(previous.map_link)
    updated_link = _normalize_nullable(updated.map_link)
    if previous_link != updated_link:
        changes.append(
            ChangedField("Map link", previous_link or no_link, updated_link or no_link)
        )

    return changes


def build_event_update_content(
    event_id: int,
    previous: EventSnapshot,
    updated: EventSnapshot,
    settings: NotificationSettings | None = None,
) -> RenderedMessage:
    """
    Email describing what changed in an event.

    Only changed fields are listed, each as a before/after pair. When nothing
    user-visible changed, a generic "was updated" message is produced instead.
    """
    settings = settings or NotificationSettings()
    changes = get_changed_fields(previous, updated, settings)
    title = updated.title or previous.title

    text_context = {**_base_context(settings, event_id), "title": title}
    html_context = {
        **_base_context(settings, event_id),
        "title": escape_html(title),
    }
    subject = get_message("event_update", "email_subject", text_context)

    if not changes:
        date_time = format_event_datetime(updated.date_time, settings.civil_timezone)
        text_context.update(date_time=date_time, location=updated.location)
        html_context.update(
            date_time=date_time, location=escape_html(updated.location)
        )
        return RenderedMessage(
            subject=subject,
            html_body=get_message("event_update", "unchanged_html", html_context),
            text_body=get_message("event_update", "unchanged_text", text_context),
        )

    text_changes = "\n\n".join(
        get_message(
            "event_update",
            "change_text",
            {"label": c.label, "previous": c.previous, "updated": c.updated},
        )
        for c in changes
    )
    html_changes = "\n".join(
        get_message(
            "event_update",
            "change_html",
            {
                "label": escape_html(c.label),
                "previous": escape_html(c.previous),
                "updated": escape_html(c.updated),
            },
        )
        for c in changes
    )

    return RenderedMessage(
        subject=subject,
        html_body=get_message(
            "event_update", "email_html", {**html_context, "changes": html_changes}
        ),
        text_body=get_message(
            "event_update", "email_text", {**text_context, "changes": text_changes}
        ),
    )


def build_reminder_content(
    event_id: int,
    event: EventSnapshot,
    settings: NotificationSettings | None = None,
) -> RenderedMessage:
    """Email reminding members that an event is tomorrow."""
    settings = settings or NotificationSettings()
    text_context = _event_context(event_id, event, settings, escape=False)
    html_context = _event_context(event_id, event, settings, escape=True)

    map_link = _normalize_nullable(event.map_link)
    if map_link:
        text_context["map_link"] = get_message(
            "reminder", "map_link_text", {"map_link": map_link}
        )
        html_context["map_link"] = get_message(
            "reminder", "map_link_html", {"map_link": escape_html(map_link)}
        )
    else:
        text_context["map_link"] = get_placeholder("map_link_missing_text")
        html_context["map_link"] = get_placeholder("map_link_missing_html")

    return RenderedMessage(
        subject=get_message("reminder", "email_subject", text_context),
        html_body=get_message("reminder", "email_html", html_context),
        text_body=get_message("reminder", "email_text", text_context),
    )


# =============================================================================
# Push payloads
# =============================================================================


def _build_push(
    message_type: str,
    event_id: int,
    event: EventSnapshot,
    settings: NotificationSettings | None,
    title: str | None = None,
) -> PushPayload:
    settings = settings or NotificationSettings()
    context = {
        **_base_context(settings, event_id),
        "title": title or event.title,
        "location": event.location,
        "date_time": format_event_datetime(event.date_time, settings.civil_timezone),
    }
    return PushPayload(
        title=get_message(message_type, "push_title", context),
        body=get_message(message_type, "push_body", context),
        url=build_event_path(event_id),
    )


def build_new_event_push(
    event_id: int,
    event: EventSnapshot,
    settings: NotificationSettings | None = None,
) -> PushPayload:
    return _build_push("new_event", event_id, event, settings)


def build_event_update_push(
    event_id: int,
    previous: EventSnapshot,
    updated: EventSnapshot,
    settings: NotificationSettings | None = None,
) -> PushPayload:
    """Push for an edit; a blank updated title falls back to the previous one."""
    title = updated.title or previous.title
    return _build_push("event_update", event_id, updated, settings, title=title)


def build_reminder_push(
    event_id: int,
    event: EventSnapshot,
    settings: NotificationSettings | None = None,
) -> PushPayload:
    return _build_push("reminder", event_id, event, settings)
