"""
Timezone Utilities.

Golden Rules:
1. Database: Always store UTC
2. API: Return ISO 8601 (UTC)
3. Expiry math: always against an injected clock, never datetime.utcnow()
"""

from datetime import datetime, timezone
from typing import Callable

# UTC constant
UTC = timezone.utc

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """
    Get current time in UTC (timezone-aware).

    Always use this instead of datetime.utcnow() which returns
    naive datetime.
    """
    return datetime.now(UTC)


def to_utc(dt: datetime) -> datetime:
    """
    Convert datetime to UTC.

    Naive datetimes are assumed to already be UTC (SQLite hands them back
    without tzinfo).
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)
