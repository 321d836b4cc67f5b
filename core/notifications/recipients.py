"""
Recipient resolution per channel.

Email goes to every member. Push goes only to members who enabled it and
have a stored browser subscription. The per-recipient "already sent" check
is done by the dispatcher, next to the send and the log write.
"""

from core.database import get_connection
from core.queries.members import list_members, list_push_members


async def get_email_recipients() -> list[dict]:
    """All registered members."""
    async with get_connection() as conn:
        return await list_members(conn)


async def get_push_recipients() -> list[dict]:
    """Members with push enabled and a non-null subscription."""
    async with get_connection() as conn:
        return await list_push_members(conn)
