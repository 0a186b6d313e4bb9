import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Dict, Optional

from ..core.dates import parse_timestamp, utcnow


logger = logging.getLogger(__name__)

ACTIVE_WINDOW_DAYS = 30
UNKNOWN_DOMAIN = 'unknown'


def _field(user: Any, name: str) -> Any:
    if isinstance(user, Mapping):
        return user.get(name)
    return None


def email_domain(email: Any) -> str:
    if not isinstance(email, str) or '@' not in email:
        return UNKNOWN_DOMAIN
    return email.split('@')[1]


def last_activity(user: Any) -> Optional[datetime]:
    """Effective activity instant: ``updatedAt`` if set, else ``createdAt``."""
    return parse_timestamp(_field(user, 'updatedAt') or _field(user, 'createdAt'))


def is_active(user: Any, now: datetime, active_window_days: int = ACTIVE_WINDOW_DAYS) -> bool:
    # Unparseable timestamps count as inactive.
    last_active = last_activity(user)
    if last_active is None:
        return False
    return (now - last_active).days <= active_window_days


def get_user_stats(
    users: Any,
    *,
    now: Optional[datetime] = None,
    active_window_days: int = ACTIVE_WINDOW_DAYS,
) -> Optional[Dict[str, Any]]:
    """Summarize a list of user records.

    Returns None when ``users`` is not a list. ``newest``/``oldest`` are the
    records themselves; the first record wins a tie and records with an
    unparseable ``createdAt`` are never picked.
    """
    if not isinstance(users, (list, tuple)):
        return None

    now = parse_timestamp(now) if now is not None else utcnow()
    active = 0
    newest = oldest = None
    newest_at = oldest_at = None
    by_domain: Dict[str, int] = {}

    for user in users:
        if is_active(user, now, active_window_days):
            active += 1

        created_at = parse_timestamp(_field(user, 'createdAt'))
        if created_at is None:
            logger.debug(f"Skipping record without a valid createdAt in newest/oldest: {_field(user, 'id')!r}")
        else:
            if newest_at is None or created_at > newest_at:
                newest, newest_at = user, created_at
            if oldest_at is None or created_at < oldest_at:
                oldest, oldest_at = user, created_at

        domain = email_domain(_field(user, 'email'))
        by_domain[domain] = by_domain.get(domain, 0) + 1

    return {
        'total': len(users),
        'active': active,
        'inactive': len(users) - active,
        'newest': newest,
        'oldest': oldest,
        'byDomain': by_domain,
    }
