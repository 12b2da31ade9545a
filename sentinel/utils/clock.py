from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

Clock = Callable[[], datetime]

LATE_NIGHT_START = 22
LATE_NIGHT_END = 6


def is_late_night(now: datetime) -> bool:
    return now.hour >= LATE_NIGHT_START or now.hour < LATE_NIGHT_END


def is_weekend(now: datetime) -> bool:
    # Monday is 0
    return now.weekday() >= 5


def days_since(then: Optional[datetime], now: Optional[datetime] = None) -> int:
    """Whole days elapsed since `then`; 0 when there is no date."""
    if then is None:
        return 0
    if now is None:
        now = datetime.now(then.tzinfo)
    if (then.tzinfo is None) != (now.tzinfo is None):
        then = then.replace(tzinfo=now.tzinfo)
    return max(0, (now - then).days)
