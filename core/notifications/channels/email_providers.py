"""
Concrete email providers.

Resend (bearer-token JSON API) and Mailgun (basic-auth form API) are called
over httpx. SendGrid goes through its SDK, which is blocking, so it runs in a
worker thread.
"""

import asyncio
import os
from dataclasses import dataclass

import httpx
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, ReplyTo

from core.config import get_email_from
from core.enums import EmailProviderName
from core.notifications.channels.email import EmailMessage, EmailSendResult

DEFAULT_RESEND_API_URL = "https://api.resend.com/emails"
DEFAULT_MAILGUN_API_URL = "https://api.mailgun.net/v3"
HTTP_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True)
class ResendConfig:
    api_key: str | None
    api_url: str = DEFAULT_RESEND_API_URL

    @classmethod
    def from_env(cls) -> "ResendConfig":
        return cls(
            api_key=os.environ.get("RESEND_API_KEY") or None,
            api_url=os.environ.get("RESEND_API_URL") or DEFAULT_RESEND_API_URL,
        )


@dataclass(frozen=True)
class MailgunConfig:
    api_key: str | None
    domain: str | None
    api_url: str = DEFAULT_MAILGUN_API_URL

    @classmethod
    def from_env(cls) -> "MailgunConfig":
        return cls(
            api_key=os.environ.get("MAILGUN_API_KEY") or None,
            domain=os.environ.get("MAILGUN_DOMAIN") or None,
            api_url=os.environ.get("MAILGUN_API_URL") or DEFAULT_MAILGUN_API_URL,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.api_url.rstrip('/')}/{self.domain}/messages"


@dataclass(frozen=True)
class SendGridConfig:
    api_key: str | None

    @classmethod
    def from_env(cls) -> "SendGridConfig":
        return cls(api_key=os.environ.get("SENDGRID_API_KEY") or None)


def _error_message(e: Exception) -> str:
    return str(e) or e.__class__.__name__


class ResendEmailProvider:
    name = EmailProviderName.resend

    def __init__(
        self,
        config: ResendConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or ResendConfig.from_env()
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    async def send(self, message: EmailMessage) -> EmailSendResult:
        if not self.is_configured:
            return EmailSendResult.not_configured(
                self.name.value, "RESEND_API_KEY is not configured"
            )

        payload = {
            "from": message.from_address or get_email_from(),
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
        }
        if message.reply_to:
            payload["reply_to"] = message.reply_to

        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=HTTP_TIMEOUT_SECONDS
            ) as client:
                response = await client.post(
                    self.config.api_url,
                    headers={"Authorization": f"Bearer {self.config.api_key}"},
                    json=payload,
                )
        except httpx.HTTPError as e:
            return EmailSendResult.failed(self.name.value, _error_message(e))

        if not response.is_success:
            return EmailSendResult.failed(
                self.name.value,
                f"Resend API request failed ({response.status_code}): {response.text}",
            )
        return EmailSendResult.delivered(self.name.value)


class MailgunEmailProvider:
    name = EmailProviderName.mailgun

    def __init__(
        self,
        config: MailgunConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or MailgunConfig.from_env()
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key and self.config.domain)

    async def send(self, message: EmailMessage) -> EmailSendResult:
        if not self.is_configured:
            return EmailSendResult.not_configured(
                self.name.value, "MAILGUN_API_KEY or MAILGUN_DOMAIN is not configured"
            )

        form = {
            "from": message.from_address or get_email_from(),
            "to": message.to,
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
        }
        if message.reply_to:
            form["h:Reply-To"] = message.reply_to

        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=HTTP_TIMEOUT_SECONDS
            ) as client:
                response = await client.post(
                    self.config.endpoint,
                    auth=("api", self.config.api_key),
                    data=form,
                )
        except httpx.HTTPError as e:
            return EmailSendResult.failed(self.name.value, _error_message(e))

        if not response.is_success:
            return EmailSendResult.failed(
                self.name.value,
                f"Mailgun API request failed ({response.status_code}): {response.text}",
            )
        return EmailSendResult.delivered(self.name.value)


class SendGridEmailProvider:
    name = EmailProviderName.sendgrid

    def __init__(self, config: SendGridConfig | None = None):
        self.config = config or SendGridConfig.from_env()
        self._client: SendGridAPIClient | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    def _get_client(self) -> SendGridAPIClient:
        """Get or create the SendGrid client."""
        if self._client is None:
            self._client = SendGridAPIClient(self.config.api_key)
        return self._client

    def _send_sync(self, message: EmailMessage) -> int:
        mail = Mail(
            from_email=message.from_address or get_email_from(),
            to_emails=message.to,
            subject=message.subject,
            plain_text_content=message.text,
            html_content=message.html,
        )
        if message.reply_to:
            mail.reply_to = ReplyTo(message.reply_to)

        response = self._get_client().send(mail)
        return response.status_code

    async def send(self, message: EmailMessage) -> EmailSendResult:
        if not self.is_configured:
            return EmailSendResult.not_configured(
                self.name.value, "SENDGRID_API_KEY is not configured"
            )

        try:
            status_code = await asyncio.to_thread(self._send_sync, message)
        except Exception as e:
            # The SDK raises python_http_client errors for non-2xx responses
            return EmailSendResult.failed(self.name.value, _error_message(e))

        if status_code not in (200, 201, 202):
            return EmailSendResult.failed(
                self.name.value, f"SendGrid API request failed ({status_code})"
            )
        return EmailSendResult.delivered(self.name.value)


EMAIL_PROVIDERS = {
    EmailProviderName.resend: ResendEmailProvider,
    EmailProviderName.mailgun: MailgunEmailProvider,
    EmailProviderName.sendgrid: SendGridEmailProvider,
}
