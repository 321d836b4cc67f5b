"""Tests for session verification on protected routes."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

import web_api.auth as auth

TEST_JWT_SECRET = "test-secret"
URL = "/api/settings/notifications"


def sign(payload: dict, secret: str = TEST_JWT_SECRET) -> str:
    return jwt.encode(payload, secret, algorithm="HS256")


class TestSessionVerification:
    def test_verify_returns_payload(self):
        token = sign({"sub": "auth|alice", "email": "alice@example.com"})
        assert auth.verify_jwt(token)["sub"] == "auth|alice"

    def test_wrong_secret_is_rejected(self):
        token = sign({"sub": "auth|alice", "email": "a@example.com"}, "other")
        assert auth.verify_jwt(token) is None

    @pytest.mark.asyncio
    async def test_expired_token_is_401(self, client):
        token = sign(
            {
                "sub": "auth|alice",
                "email": "alice@example.com",
                "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
            }
        )

        response = await client.post(
            URL, json={"enabled": True}, headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"

    @pytest.mark.asyncio
    async def test_token_without_email_is_401(self, client):
        token = sign({"sub": "auth|alice"})

        response = await client.post(
            URL, json={"enabled": True}, headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_session_cookie_is_accepted(self, client):
        token = sign({"sub": "auth|alice", "email": "alice@example.com"})
        client.cookies.set("session", token)

        response = await client.post(URL, json={"enabled": False})

        assert response.status_code == 200
