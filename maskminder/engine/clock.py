"""Time sources.

Everything in the engine asks a clock for "now" instead of reading the wall
clock, so tests can pin time to a fixed instant.
"""

from datetime import datetime, timedelta, tzinfo
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    """Supplies the current instant, aware and in the user's local zone."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in a fixed IANA timezone."""

    def __init__(self, tz: str = "UTC"):
        self.tz = ZoneInfo(tz)

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock:
    """A clock that only moves when told to."""

    def __init__(self, instant: datetime, tz: tzinfo | None = None):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=tz or ZoneInfo("UTC"))
        elif tz is not None:
            instant = instant.astimezone(tz)
        self._now = instant

    def now(self) -> datetime:
        return self._now

    def set(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=self._now.tzinfo)
        self._now = instant

    def advance(self, **kwargs: float) -> datetime:
        """Move forward by the given timedelta, e.g. ``advance(hours=4)``."""
        self._now = self._now + timedelta(**kwargs)
        return self._now
