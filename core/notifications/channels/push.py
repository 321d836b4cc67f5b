"""
Browser push delivery channel (Web Push with VAPID).

The sender is built once at startup from an explicit VapidConfig. Without a
config every send reports "skipped" and no network call is attempted.
"""

import asyncio
import json
import os
from dataclasses import asdict, dataclass

from pywebpush import WebPushException, webpush

PUSH_TTL_SECONDS = 60
EXPIRED_STATUS_CODES = (404, 410)


@dataclass(frozen=True)
class VapidConfig:
    public_key: str
    private_key: str
    subject: str

    @property
    def claims(self) -> dict[str, str]:
        return {"sub": self.subject}

    @classmethod
    def from_env(cls) -> "VapidConfig | None":
        """Build from VAPID_* env vars, or None when any of them is missing."""
        public_key = os.environ.get("VAPID_PUBLIC_KEY") or os.environ.get(
            "PUBLIC_VAPID_PUBLIC_KEY"
        )
        private_key = os.environ.get("VAPID_PRIVATE_KEY")
        subject = os.environ.get("VAPID_SUBJECT")
        if not (public_key and private_key and subject):
            return None
        return cls(public_key=public_key, private_key=private_key, subject=subject)


@dataclass(frozen=True)
class PushPayload:
    """What the service worker shows: a short title/body and a link."""

    title: str
    body: str
    url: str

    def to_json(self) -> str:
        return json.dumps(asdict(self))


@dataclass
class PushSendResult:
    success: bool
    skipped: bool = False
    expired: bool = False
    error: str | None = None


class WebPushSender:
    """Sends Web Push messages to stored browser subscriptions."""

    def __init__(self, config: VapidConfig | None):
        self.config = config

    @property
    def is_configured(self) -> bool:
        return self.config is not None

    def _send_sync(self, subscription_info: dict, data: str) -> None:
        webpush(
            subscription_info=subscription_info,
            data=data,
            vapid_private_key=self.config.private_key,
            vapid_claims=dict(self.config.claims),
            ttl=PUSH_TTL_SECONDS,
        )

    async def send(self, subscription_json: str, payload: PushPayload) -> PushSendResult:
        """
        Deliver one payload to one subscription.

        Args:
            subscription_json: The subscription blob stored for the member
            payload: Title, body and URL to show

        Returns:
            PushSendResult; expired=True when the push service reports the
            subscription gone (HTTP 404/410)
        """
        if self.config is None:
            return PushSendResult(
                success=False, skipped=True, error="Push delivery is not configured"
            )

        try:
            subscription_info = json.loads(subscription_json)
        except (json.JSONDecodeError, TypeError) as e:
            return PushSendResult(success=False, error=f"Invalid subscription: {e}")

        try:
            await asyncio.to_thread(
                self._send_sync, subscription_info, payload.to_json()
            )
        except WebPushException as e:
            status_code = e.response.status_code if e.response is not None else None
            return PushSendResult(
                success=False,
                expired=status_code in EXPIRED_STATUS_CODES,
                error=str(e),
            )
        except Exception as e:
            # requests and key-parsing errors surface as plain exceptions
            return PushSendResult(success=False, error=str(e) or e.__class__.__name__)

        return PushSendResult(success=True)
