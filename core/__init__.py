"""
Core business logic - platform-agnostic.
Used by the web API and the reminder scheduler.
"""

# Database (SQLAlchemy)
from .database import get_connection, get_transaction, get_engine, close_engine

# Configuration
from .config import NotificationSettings

# Civil timezone utilities
from .timezone import (
    CivilTimeParseError, resolve_civil_instant, civil_date_key,
    tomorrow_civil_date_key, civil_hour, format_event_datetime,
)

__all__ = [
    # Database (SQLAlchemy)
    'get_connection', 'get_transaction', 'get_engine', 'close_engine',
    # Configuration
    'NotificationSettings',
    # Timezone
    'CivilTimeParseError', 'resolve_civil_instant', 'civil_date_key',
    'tomorrow_civil_date_key', 'civil_hour', 'format_event_datetime',
]
