"""
Centralized configuration for the event notification service.

Settings are read from environment variables (loaded from .env / .env.local
by the entry points). Objects that the dispatch engine depends on are built
once at startup and passed around explicitly.
"""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_CIVIL_TIMEZONE = "Europe/Oslo"
DEFAULT_REMINDER_HOUR = 18
DEFAULT_SEND_TIMEOUT_SECONDS = 10.0
DEFAULT_REMINDER_INTERVAL_MINUTES = 30
DEFAULT_APP_NAME = "Torsdagskos"
DEFAULT_EMAIL_FROM = "Torsdagskos <onboarding@resend.dev>"


def is_dev_mode() -> bool:
    """Check if running in development mode (DEV_MODE env)."""
    return os.getenv("DEV_MODE", "").lower() in ("true", "1", "yes")


def is_production() -> bool:
    """Check if running in production (ENVIRONMENT=production)."""
    return os.getenv("ENVIRONMENT", "").lower() == "production"


def get_api_port() -> int:
    """Get API server port from env or default."""
    return int(os.getenv("API_PORT", "8000"))


def get_frontend_url() -> str:
    """Get the public URL of the web frontend."""
    return os.environ.get(
        "FRONTEND_URL", f"http://localhost:{get_api_port()}"
    ).rstrip("/")


def get_civil_timezone() -> str:
    """IANA name of the zone all user-facing dates are interpreted in."""
    return os.getenv("CIVIL_TIMEZONE", "").strip() or DEFAULT_CIVIL_TIMEZONE


def get_email_from() -> str:
    """Default sender address for outgoing email."""
    return os.getenv("EMAIL_FROM", "").strip() or DEFAULT_EMAIL_FROM


def get_cron_secret() -> str | None:
    """Shared secret for the external cron endpoint (None disables it)."""
    return os.getenv("CRON_SECRET") or None


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using default {default}")
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using default {default}")
        return default


@dataclass(frozen=True)
class NotificationSettings:
    """Settings shared by the dispatcher, content builder and reminder tick."""

    civil_timezone: str = DEFAULT_CIVIL_TIMEZONE
    reminder_hour: int = DEFAULT_REMINDER_HOUR
    send_timeout_seconds: float = DEFAULT_SEND_TIMEOUT_SECONDS
    email_provider: str = ""
    app_name: str = DEFAULT_APP_NAME
    reminder_interval_minutes: int = DEFAULT_REMINDER_INTERVAL_MINUTES

    @classmethod
    def from_env(cls) -> "NotificationSettings":
        reminder_hour = _int_env("REMINDER_HOUR", DEFAULT_REMINDER_HOUR)
        if not 0 <= reminder_hour <= 23:
            logger.warning(
                f"REMINDER_HOUR={reminder_hour} is out of range, "
                f"using {DEFAULT_REMINDER_HOUR}"
            )
            reminder_hour = DEFAULT_REMINDER_HOUR

        return cls(
            civil_timezone=get_civil_timezone(),
            reminder_hour=reminder_hour,
            send_timeout_seconds=_float_env(
                "NOTIFICATION_SEND_TIMEOUT_SECONDS", DEFAULT_SEND_TIMEOUT_SECONDS
            ),
            email_provider=os.getenv("EMAIL_PROVIDER", ""),
            app_name=os.getenv("APP_NAME", "").strip() or DEFAULT_APP_NAME,
            reminder_interval_minutes=max(
                1,
                _int_env(
                    "REMINDER_INTERVAL_MINUTES", DEFAULT_REMINDER_INTERVAL_MINUTES
                ),
            ),
        )


# Required environment variables
# Format: (name, description, required_in_dev)
REQUIRED_ENV_VARS = [
    ("DATABASE_URL", "PostgreSQL connection string", True),
    ("JWT_SECRET", "Secret key for session JWTs", True),
    ("CRON_SECRET", "Shared secret for the reminder cron endpoint", False),
    ("EMAIL_PROVIDER", "Email provider name (resend, mailgun, sendgrid)", False),
    ("VAPID_PRIVATE_KEY", "VAPID private key for browser push", False),
]


def check_required_env_vars() -> tuple[bool, list[str]]:
    """
    Check that required environment variables are set.

    Returns:
        (all_ok, warnings): Tuple of success flag and list of warning messages
    """
    warnings = []
    errors = []
    in_dev = is_dev_mode()

    for name, description, required_in_dev in REQUIRED_ENV_VARS:
        value = os.environ.get(name)

        if not value:
            if is_production() and required_in_dev:
                errors.append(f"{name}: Not set ({description})")
            elif required_in_dev or not in_dev:
                warnings.append(f"{name}: Not set ({description})")

    for error in errors:
        logger.error(f"Missing required setting {error}")

    return not errors, warnings
