"""Member-related database queries using SQLAlchemy Core."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import members


async def list_members(conn: AsyncConnection) -> list[dict[str, Any]]:
    """Get every registered member, ordered by ID."""
    result = await conn.execute(select(members).order_by(members.c.member_id))
    return [dict(row) for row in result.mappings()]


async def list_push_members(conn: AsyncConnection) -> list[dict[str, Any]]:
    """Get members with push enabled and a stored subscription."""
    result = await conn.execute(
        select(members)
        .where(members.c.push_notifications_enabled.is_(True))
        .where(members.c.push_subscription.is_not(None))
        .order_by(members.c.member_id)
    )
    return [dict(row) for row in result.mappings()]


async def get_member_by_subject(
    conn: AsyncConnection,
    auth_subject: str,
) -> dict[str, Any] | None:
    """Get a member by their authentication subject."""
    result = await conn.execute(
        select(members).where(members.c.auth_subject == auth_subject)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def create_member(
    conn: AsyncConnection,
    auth_subject: str,
    email: str,
    name: str | None = None,
    **fields: Any,
) -> dict[str, Any]:
    """Create a new member and return the created record."""
    values = {
        "auth_subject": auth_subject,
        "email": email,
        "name": (name or "").strip() or email or "Member",
        **fields,
    }
    result = await conn.execute(insert(members).values(**values).returning(members))
    return dict(result.mappings().one())


async def get_or_create_member(
    conn: AsyncConnection,
    auth_subject: str,
    email: str,
    name: str | None = None,
) -> dict[str, Any]:
    """
    Get or lazily create the member for an authentication subject.

    Uses SELECT-then-INSERT with a re-read on unique constraint violation,
    so two concurrent first requests end up with the same row. Commits on
    its own; pass a connection from get_connection().
    """
    existing = await get_member_by_subject(conn, auth_subject)
    if existing:
        return existing

    try:
        member = await create_member(conn, auth_subject, email, name)
        await conn.commit()
        return member
    except IntegrityError:
        # Another request created the member first
        await conn.rollback()
        existing = await get_member_by_subject(conn, auth_subject)
        if existing:
            return existing
        raise


async def set_push_enabled(
    conn: AsyncConnection,
    member_id: int,
    enabled: bool,
) -> dict[str, Any] | None:
    """Toggle a member's push-notification flag."""
    result = await conn.execute(
        update(members)
        .where(members.c.member_id == member_id)
        .values(
            push_notifications_enabled=enabled,
            updated_at=datetime.now(timezone.utc),
        )
        .returning(members)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def set_push_subscription(
    conn: AsyncConnection,
    member_id: int,
    subscription_json: str | None,
    at: datetime | None = None,
) -> dict[str, Any] | None:
    """
    Store (or clear, with None) a member's push subscription.

    The push flag follows the subscription: enabled when one is stored,
    disabled when it is cleared.
    """
    now = at or datetime.now(timezone.utc)
    result = await conn.execute(
        update(members)
        .where(members.c.member_id == member_id)
        .values(
            push_subscription=subscription_json,
            push_notifications_enabled=subscription_json is not None,
            push_subscription_updated_at=now,
            updated_at=now,
        )
        .returning(members)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def clear_push_subscription(
    conn: AsyncConnection,
    member_id: int,
    at: datetime | None = None,
) -> None:
    """Disable push and drop the stored subscription (endpoint expired)."""
    await set_push_subscription(conn, member_id, None, at=at)
