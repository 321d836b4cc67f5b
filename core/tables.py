"""SQLAlchemy Core table definitions for the database schema."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
    false,
    func,
)

from .enums import notification_channel_enum, notification_type_enum

# Naming convention for constraints (helps Alembic generate better names)
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}
metadata = MetaData(naming_convention=convention)


# =====================================================
# 1. MEMBERS
# =====================================================
members = Table(
    "members",
    metadata,
    Column("member_id", Integer, primary_key=True, autoincrement=True),
    Column("auth_subject", Text, nullable=False, unique=True),  # JWT "sub"
    Column("email", Text, nullable=False, unique=True),
    Column("name", Text, nullable=False),
    Column(
        "push_notifications_enabled",
        Boolean,
        nullable=False,
        server_default=false(),
    ),
    Column("push_subscription", Text),  # Browser PushSubscription JSON
    Column("push_subscription_updated_at", DateTime(timezone=True)),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now()),
)


# =====================================================
# 2. EVENTS
# =====================================================
events = Table(
    "events",
    metadata,
    Column("event_id", Integer, primary_key=True, autoincrement=True),
    Column("title", Text, nullable=False),
    Column("description", Text, nullable=False, server_default=""),
    Column("date_time", DateTime(timezone=True), nullable=False),  # absolute instant
    Column("location", Text, nullable=False),
    Column("map_link", Text),
    Column(
        "created_by",
        Integer,
        ForeignKey("members.member_id", ondelete="SET NULL"),
    ),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now()),
    Index("idx_events_date_time", "date_time"),
)


# =====================================================
# 3. NOTIFICATION_LOG
# =====================================================
# Append-only record of successful sends. The unique constraint on
# (member_id, event_id, notification_type, channel) is the dedup key.
notification_log = Table(
    "notification_log",
    metadata,
    Column("log_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "member_id",
        Integer,
        ForeignKey("members.member_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "event_id",
        Integer,
        ForeignKey("events.event_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("notification_type", notification_type_enum, nullable=False),
    Column("channel", notification_channel_enum, nullable=False),
    Column("sent_at", DateTime(timezone=True), server_default=func.now()),
    UniqueConstraint(
        "member_id",
        "event_id",
        "notification_type",
        "channel",
        name="uq_notification_log_dedup",
    ),
    Index("idx_notification_log_event_id", "event_id"),
    Index("idx_notification_log_sent_at", "sent_at"),
)
