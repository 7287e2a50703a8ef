"""
Clock -- injectable time source.

The movement store stamps ``occurred_at`` from a Clock, never from
``datetime.now()`` directly, so tests can order movements exactly.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """``now()`` returns a timezone-aware UTC ``datetime``."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    """Wall-clock time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock that only moves when told to.

    Repeated ``now()`` calls return the same instant until ``advance()``.
    """

    def __init__(self, start: datetime | None = None):
        self._now = start or datetime(2025, 1, 10, 9, 0, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: int = 1) -> datetime:
        """Move forward by ``seconds`` and return the new time."""
        self._now += timedelta(seconds=seconds)
        return self._now
