"""
Message text for event notifications.

messages.yaml holds one section per notification type (new_event,
event_update, reminder) with the email subject, text and HTML bodies and the
push title and body, plus a `placeholders` section of fixed fallback strings.
Parts are filled with str.format; values are inserted as-is, so callers
escape anything bound for HTML first.
"""

from pathlib import Path

import yaml

MESSAGES_PATH = Path(__file__).parent / "messages.yaml"

_templates: dict | None = None


def load_templates() -> dict:
    """Parse messages.yaml once per process."""
    global _templates
    if _templates is None:
        with open(MESSAGES_PATH, encoding="utf-8") as f:
            _templates = yaml.safe_load(f)
    return _templates


def render_message(template: str, context: dict) -> str:
    """Fill {name} fields; a field missing from context raises KeyError."""
    return template.format(**context)


def get_message(message_type: str, part: str, context: dict) -> str:
    """
    Render one part of a notification, e.g. ("reminder", "push_title").

    Raises:
        KeyError: Unknown notification type or part, or a missing field
    """
    return render_message(load_templates()[message_type][part], context)


def get_placeholder(name: str) -> str:
    """Fallback text shown for empty fields, e.g. "no_description"."""
    return load_templates()["placeholders"][name]
