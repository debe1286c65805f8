"""Wall-clock source for sync timestamps.

Components take a ``clock`` callable instead of calling datetime.now()
directly so tests can pin or step time.
"""

from __future__ import annotations

import datetime
from collections.abc import Callable

Clock = Callable[[], datetime.datetime]


def utcnow() -> datetime.datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.datetime.now(datetime.timezone.utc)
