from datetime import datetime
from typing import Callable
from zoneinfo import ZoneInfo

from app.core.config import settings

# Returns an aware datetime; evaluation code never reads the system clock itself.
Clock = Callable[[], datetime]


def system_clock() -> datetime:
    return datetime.now(ZoneInfo(settings.TIMEZONE))


def fixed_clock(instant: datetime) -> Clock:
    """Clock frozen at `instant`, for tests and replays."""
    return lambda: instant
