"""
Clock -- Injectable source of the current date.

Responsibility:
    Engines and services never call ``datetime.now()`` or ``date.today()``
    directly.  Exemption windows are judged on an "as-of" date; when the
    caller does not supply one, the injected clock does.

Architecture position:
    Kernel > Domain.  SystemClock is the one sanctioned read of wall time.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta, timezone


class Clock(ABC):
    """
    Contract:
        ``now()`` returns a timezone-aware datetime; ``today()`` is its
        UTC calendar date.
    """

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().astimezone(timezone.utc).date()


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """Test clock that only moves when told to."""

    DEFAULT_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __init__(self, fixed_time: datetime | None = None):
        self._now = fixed_time or self.DEFAULT_TIME

    @classmethod
    def on(cls, day: date) -> "DeterministicClock":
        """Clock pinned to noon UTC of ``day``."""
        return cls(datetime.combine(day, time(12, 0), tzinfo=timezone.utc))

    def now(self) -> datetime:
        return self._now

    def set_time(self, moment: datetime) -> None:
        self._now = moment

    def advance(self, seconds: int = 1) -> None:
        self._now += timedelta(seconds=seconds)

    def advance_days(self, days: int) -> None:
        self._now += timedelta(days=days)
