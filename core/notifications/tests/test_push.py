"""Tests for the Web Push channel."""

import json
from unittest.mock import MagicMock, patch

import pytest
from pywebpush import WebPushException

from core.notifications.channels.push import (
    PushPayload,
    VapidConfig,
    WebPushSender,
)

SUBSCRIPTION = json.dumps(
    {
        "endpoint": "https://push.example.com/alice",
        "keys": {"p256dh": "key", "auth": "secret"},
    }
)
PAYLOAD = PushPayload(title="New event: Pub quiz", body="Thursday", url="/events/7")


@pytest.fixture
def sender():
    return WebPushSender(
        VapidConfig(
            public_key="public",
            private_key="private",
            subject="mailto:admin@example.com",
        )
    )


def push_error(status_code: int) -> WebPushException:
    return WebPushException("Push failed", response=MagicMock(status_code=status_code))


class TestVapidConfig:
    def test_from_env_requires_all_keys(self, monkeypatch):
        monkeypatch.setenv("VAPID_PUBLIC_KEY", "public")
        monkeypatch.setenv("VAPID_PRIVATE_KEY", "private")
        monkeypatch.delenv("VAPID_SUBJECT", raising=False)

        assert VapidConfig.from_env() is None

    def test_from_env_accepts_public_prefixed_key(self, monkeypatch):
        monkeypatch.delenv("VAPID_PUBLIC_KEY", raising=False)
        monkeypatch.setenv("PUBLIC_VAPID_PUBLIC_KEY", "public")
        monkeypatch.setenv("VAPID_PRIVATE_KEY", "private")
        monkeypatch.setenv("VAPID_SUBJECT", "mailto:admin@example.com")

        config = VapidConfig.from_env()

        assert config.public_key == "public"
        assert config.claims == {"sub": "mailto:admin@example.com"}


class TestPushPayload:
    def test_to_json(self):
        assert json.loads(PAYLOAD.to_json()) == {
            "title": "New event: Pub quiz",
            "body": "Thursday",
            "url": "/events/7",
        }


class TestWebPushSender:
    @pytest.mark.asyncio
    async def test_not_configured_is_skipped(self):
        sender = WebPushSender(None)

        with patch("core.notifications.channels.push.webpush") as mock_webpush:
            result = await sender.send(SUBSCRIPTION, PAYLOAD)

        assert not sender.is_configured
        assert result.skipped is True
        assert result.success is False
        mock_webpush.assert_not_called()

    @pytest.mark.asyncio
    async def test_success(self, sender):
        with patch("core.notifications.channels.push.webpush") as mock_webpush:
            result = await sender.send(SUBSCRIPTION, PAYLOAD)

        assert result.success is True
        kwargs = mock_webpush.call_args.kwargs
        assert kwargs["subscription_info"]["endpoint"] == "https://push.example.com/alice"
        assert json.loads(kwargs["data"])["url"] == "/events/7"
        assert kwargs["vapid_private_key"] == "private"
        assert kwargs["vapid_claims"] == {"sub": "mailto:admin@example.com"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [404, 410])
    async def test_gone_subscription_is_expired(self, sender, status_code):
        with patch(
            "core.notifications.channels.push.webpush",
            side_effect=push_error(status_code),
        ):
            result = await sender.send(SUBSCRIPTION, PAYLOAD)

        assert result.success is False
        assert result.expired is True

    @pytest.mark.asyncio
    async def test_other_push_error_is_plain_failure(self, sender):
        with patch(
            "core.notifications.channels.push.webpush",
            side_effect=push_error(500),
        ):
            result = await sender.send(SUBSCRIPTION, PAYLOAD)

        assert result.success is False
        assert result.expired is False
        assert result.skipped is False

    @pytest.mark.asyncio
    async def test_transport_error_is_failure(self, sender):
        with patch(
            "core.notifications.channels.push.webpush",
            side_effect=ConnectionError("network down"),
        ):
            result = await sender.send(SUBSCRIPTION, PAYLOAD)

        assert result.success is False
        assert result.expired is False
        assert result.error == "network down"

    @pytest.mark.asyncio
    async def test_invalid_subscription_json(self, sender):
        with patch("core.notifications.channels.push.webpush") as mock_webpush:
            result = await sender.send("{not json", PAYLOAD)

        assert result.success is False
        assert result.error.startswith("Invalid subscription")
        mock_webpush.assert_not_called()
