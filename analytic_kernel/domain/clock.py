"""
Clock -- injectable time source.

Services and the budget facade never call ``datetime.now()`` or
``date.today()`` directly; they receive a Clock.  Tests use
DeterministicClock so creation order, revision ordering and dashboard
month windows are reproducible.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone

_DEFAULT_START = datetime(2025, 1, 1, tzinfo=timezone.utc)


class Clock(ABC):
    """
    Time source for services.

    Guarantees:
        - ``now()`` is timezone-aware UTC.
        - ``today()`` is the calendar date of ``now()``.
    """

    @abstractmethod
    def now(self) -> datetime: ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """Frozen clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self._current = start or _DEFAULT_START

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: float = 1) -> datetime:
        """Move forward and return the new time."""
        self._current += timedelta(seconds=seconds)
        return self._current
