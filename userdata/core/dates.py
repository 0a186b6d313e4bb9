import logging
from datetime import date, datetime, timezone
from typing import Any, Optional


logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string into an aware UTC datetime.

    Returns None for anything that cannot be parsed. Naive values are
    taken as UTC; bare dates are midnight UTC.
    """
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if not isinstance(value, (str, datetime)):
        return None
    try:
        if isinstance(value, str):
            value = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
        return _as_utc(value)
    except (ValueError, OverflowError):
        # Out-of-range offsets overflow when shifted to UTC.
        logger.debug(f"Unparseable timestamp: {value!r}")
        return None


def to_iso_instant(value: datetime) -> str:
    """Render as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    return _as_utc(value).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def to_calendar_date(value: datetime) -> str:
    return _as_utc(value).strftime('%Y-%m-%d')
