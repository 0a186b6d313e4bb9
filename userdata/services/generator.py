import random
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from ..core.dates import to_calendar_date, to_iso_instant, utcnow


FIRST_NAMES = ('John', 'Jane', 'Michael', 'Sarah', 'David', 'Emily', 'Chris', 'Jessica', 'Ryan', 'Ashley')
LAST_NAMES = ('Smith', 'Johnson', 'Williams', 'Brown', 'Jones', 'Garcia', 'Miller', 'Davis', 'Rodriguez', 'Martinez')
DOMAINS = ('example.com', 'test.org', 'sample.net', 'demo.co')

USERNAME_SUFFIX_RANGE = (100, 999)
CREATED_AT_DAYS_AGO = (1, 100)
JOIN_DATE_DAYS_AGO = (1, 365)


def generate_random_user(
    *,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
    created_at_days_ago: tuple[int, int] = CREATED_AT_DAYS_AGO,
    join_date_days_ago: tuple[int, int] = JOIN_DATE_DAYS_AGO,
) -> Dict[str, Any]:
    """Build a synthetic user record for tests and demos.

    ``createdAt`` and ``profile.joinDate`` use independent offsets, so they
    need not agree with each other.
    """
    rng = rng or random
    now = now or utcnow()

    first_name = rng.choice(FIRST_NAMES)
    last_name = rng.choice(LAST_NAMES)
    username = f"{first_name}{last_name}{rng.randint(*USERNAME_SUFFIX_RANGE)}".lower()
    email = f"{username}@{rng.choice(DOMAINS)}"

    created_at = now - timedelta(days=rng.randint(*created_at_days_ago))
    join_date = now - timedelta(days=rng.randint(*join_date_days_ago))

    return {
        'username': username,
        'email': email,
        'createdAt': to_iso_instant(created_at),
        'profile': {
            'firstName': first_name,
            'lastName': last_name,
            'fullName': f"{first_name} {last_name}",
            'joinDate': to_calendar_date(join_date),
        },
    }
