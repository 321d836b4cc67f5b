# web_api/tests/conftest.py
"""Pytest fixtures for web API tests.

Requests go through httpx's ASGI transport on the test's own event loop, so
the SQLite engine from the root conftest is shared with the app. The app's
lifespan is not run; tests install whatever dispatcher they need.
"""

from unittest.mock import patch

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from core.notifications.dispatcher import reset_dispatcher

TEST_JWT_SECRET = "test-secret"


@pytest.fixture(autouse=True)
def _jwt_secret():
    """Ensure JWT_SECRET is set so tokens can be issued and verified."""
    with patch("web_api.auth.JWT_SECRET", TEST_JWT_SECRET):
        yield


@pytest.fixture(autouse=True)
def _no_dispatcher():
    reset_dispatcher()
    yield
    reset_dispatcher()


@pytest_asyncio.fixture
async def client(sqlite_db):
    """Async test client for the FastAPI app."""
    from main import app

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client


def auth_headers(handle: str, role: str | None = None) -> dict[str, str]:
    """Bearer header for a member identified as auth|<handle>."""
    payload = {"sub": f"auth|{handle}", "email": f"{handle}@example.com"}
    if role:
        payload["role"] = role
    token = jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    return auth_headers
