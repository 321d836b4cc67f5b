"""SQLAlchemy enum definitions for the database schema."""

import enum

from sqlalchemy import Enum as SQLEnum


# =====================================================
# Python Enum Classes
# =====================================================


class NotificationType(str, enum.Enum):
    new_event = "new_event"
    event_update = "event_update"
    reminder = "reminder"


class NotificationChannel(str, enum.Enum):
    email = "email"
    push = "push"


class EmailProviderName(str, enum.Enum):
    resend = "resend"
    mailgun = "mailgun"
    sendgrid = "sendgrid"


# =====================================================
# SQLAlchemy Enum Types
# Stored as constrained VARCHAR so the same schema works on SQLite in tests
# =====================================================

notification_type_enum = SQLEnum(
    NotificationType,
    name="notification_type",
    native_enum=False,
    create_constraint=True,
    length=32,
)
notification_channel_enum = SQLEnum(
    NotificationChannel,
    name="notification_channel",
    native_enum=False,
    create_constraint=True,
    length=16,
)
