from __future__ import annotations

from datetime import datetime, timezone

import pytest


@pytest.fixture()
def now() -> datetime:
    return datetime(2024, 6, 30, 12, 0, 0, tzinfo=timezone.utc)
