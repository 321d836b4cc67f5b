"""Fixtures shared by the notification tests: in-memory channel fakes."""

import asyncio
import json
from datetime import datetime, timezone

import pytest

from core.config import NotificationSettings
from core.enums import EmailProviderName
from core.notifications.channels.email import EmailMessage, EmailSendResult
from core.notifications.channels.push import PushPayload, PushSendResult
from core.notifications.dispatcher import NotificationDispatcher, reset_dispatcher

NOW = datetime(2026, 6, 10, 10, 0, tzinfo=timezone.utc)  # 12:00 in Oslo


class FakeEmailProvider:
    """Records messages; per-address behaviour is set through the dicts."""

    name = EmailProviderName.resend

    def __init__(self, configured: bool = True):
        self.configured = configured
        self.sent: list[EmailMessage] = []
        self.fail_for: set[str] = set()
        self.raise_for: set[str] = set()
        self.hang_for: set[str] = set()

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def send(self, message: EmailMessage) -> EmailSendResult:
        if not self.configured:
            return EmailSendResult.not_configured(self.name.value, "not configured")
        if message.to in self.raise_for:
            raise RuntimeError(f"provider exploded for {message.to}")
        if message.to in self.hang_for:
            await asyncio.sleep(60)
        if message.to in self.fail_for:
            return EmailSendResult.failed(self.name.value, "rejected")
        self.sent.append(message)
        return EmailSendResult.delivered(self.name.value)


class FakePushSender:
    """Records deliveries keyed by subscription endpoint."""

    def __init__(self, configured: bool = True):
        self.configured = configured
        self.sent: list[tuple[str, PushPayload]] = []
        self.expired_for: set[str] = set()
        self.raise_for: set[str] = set()

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def send(self, subscription_json: str, payload: PushPayload) -> PushSendResult:
        endpoint = json.loads(subscription_json)["endpoint"]
        if endpoint in self.raise_for:
            raise RuntimeError(f"push exploded for {endpoint}")
        if endpoint in self.expired_for:
            return PushSendResult(success=False, expired=True, error="410 Gone")
        self.sent.append((endpoint, payload))
        return PushSendResult(success=True)


@pytest.fixture
def settings():
    return NotificationSettings(
        civil_timezone="Europe/Oslo",
        reminder_hour=12,
        send_timeout_seconds=0.5,
    )


@pytest.fixture
def email_provider():
    return FakeEmailProvider()


@pytest.fixture
def push_sender():
    return FakePushSender()


@pytest.fixture
def dispatcher(sqlite_db, email_provider, push_sender, settings):
    return NotificationDispatcher(
        email_provider=email_provider,
        push_sender=push_sender,
        settings=settings,
        clock=lambda: NOW,
    )


@pytest.fixture(autouse=True)
def clean_dispatcher():
    """Never leak the process-wide dispatcher between tests."""
    reset_dispatcher()
    yield
    reset_dispatcher()
