"""Root pytest configuration."""

from pathlib import Path

import pytest
import pytest_asyncio
from dotenv import load_dotenv

# Load environment variables before tests run
_root = Path(__file__).parent
load_dotenv(_root / ".env")
load_dotenv(_root / ".env.local", override=True)


@pytest.fixture(scope="session")
def event_loop_policy():
    """Use default event loop policy for all async tests."""
    import asyncio

    return asyncio.DefaultEventLoopPolicy()


@pytest_asyncio.fixture
async def sqlite_db(tmp_path, monkeypatch):
    """
    Point the app at a fresh SQLite file with the full schema.

    Yields the engine; the module-level engine is disposed afterwards so the
    next test gets its own database.
    """
    from core import database
    from core.tables import metadata

    await database.close_engine()
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")

    engine = database.get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield engine

    await database.close_engine()


@pytest_asyncio.fixture
async def make_member(sqlite_db):
    """Factory for member rows: await make_member("alice", push=True)."""
    import json

    from core.database import get_transaction
    from core.queries.members import create_member, set_push_subscription

    async def _make(handle: str, push: bool = False) -> dict:
        async with get_transaction() as conn:
            member = await create_member(
                conn, f"auth|{handle}", f"{handle}@example.com", handle.title()
            )
            if push:
                subscription = {
                    "endpoint": f"https://push.example.com/{handle}",
                    "keys": {"p256dh": "key", "auth": "secret"},
                }
                member = await set_push_subscription(
                    conn, member["member_id"], json.dumps(subscription)
                )
        return member

    return _make


@pytest_asyncio.fixture
async def make_event(sqlite_db):
    """Factory for event rows: await make_event(date_time, title="...")."""
    from core.database import get_transaction
    from core.queries.events import create_event

    async def _make(date_time, **fields) -> dict:
        values = {
            "title": "Pub quiz",
            "location": "Café Sara",
            "description": "Bring a pen.",
            **fields,
        }
        async with get_transaction() as conn:
            return await create_event(conn, date_time=date_time, **values)

    return _make
