"""
Email delivery channel.

Every provider implements the same async contract: send(EmailMessage) returns
an EmailSendResult that is either delivered, skipped (provider not configured)
or failed. Providers never raise for provider-level problems.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

from core.enums import EmailProviderName

logger = logging.getLogger(__name__)

DEFAULT_EMAIL_PROVIDER = EmailProviderName.resend


@dataclass
class EmailMessage:
    """Email message data."""

    to: str
    subject: str
    html: str
    text: str
    from_address: str | None = None
    reply_to: str | None = None


@dataclass
class EmailSendResult:
    """Outcome of one send attempt."""

    success: bool
    skipped: bool
    provider: str
    error: str | None = None

    @classmethod
    def delivered(cls, provider: str) -> "EmailSendResult":
        return cls(success=True, skipped=False, provider=provider)

    @classmethod
    def not_configured(cls, provider: str, error: str) -> "EmailSendResult":
        return cls(success=False, skipped=True, provider=provider, error=error)

    @classmethod
    def failed(cls, provider: str, error: str) -> "EmailSendResult":
        return cls(success=False, skipped=False, provider=provider, error=error)


class EmailProvider(Protocol):
    """Capability implemented by every email backend."""

    name: EmailProviderName

    @property
    def is_configured(self) -> bool: ...

    async def send(self, message: EmailMessage) -> EmailSendResult: ...


def parse_provider_name(value: str | None) -> EmailProviderName:
    """
    Map a configuration string to a provider name.

    Empty values select the default silently; unrecognized values log a
    warning and select the default.
    """
    raw = (value or "").strip().lower()
    if not raw:
        return DEFAULT_EMAIL_PROVIDER
    try:
        return EmailProviderName(raw)
    except ValueError:
        logger.warning(
            f'Unknown EMAIL_PROVIDER "{raw}", '
            f'defaulting to "{DEFAULT_EMAIL_PROVIDER.value}"'
        )
        return DEFAULT_EMAIL_PROVIDER


def create_email_provider(name: str | None = None) -> EmailProvider:
    """
    Build the configured email provider.

    Call once at startup; the provider reads its credentials from the
    environment when constructed.

    Args:
        name: Provider name, usually the EMAIL_PROVIDER setting
    """
    from core.notifications.channels.email_providers import EMAIL_PROVIDERS

    provider_name = parse_provider_name(name)
    provider = EMAIL_PROVIDERS[provider_name]()
    if not provider.is_configured:
        logger.warning(
            f"Email provider {provider_name.value} is not configured, "
            "emails will be skipped"
        )
    return provider
