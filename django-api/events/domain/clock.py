"""Time sources.

Policies never read the wall clock directly; services receive a TimeSource
so tests can pin the current instant.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone, tzinfo


class TimeSource(ABC):
    """Supplies the current instant in a fixed reference offset."""

    @property
    @abstractmethod
    def tz(self) -> tzinfo:
        """Reference offset used for calendar-day comparisons."""
        ...

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(TimeSource):
    """Wall clock normalised to a configured UTC offset, independent of server locale."""

    def __init__(self, utc_offset_minutes: int = 0) -> None:
        self._tz = timezone(timedelta(minutes=utc_offset_minutes))

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def now(self) -> datetime:
        return datetime.now(self._tz)


class FixedClock(TimeSource):
    """A clock that only moves when told to."""

    def __init__(self, instant: datetime, tz: tzinfo = timezone.utc) -> None:
        if instant.tzinfo is None:
            raise ValueError("FixedClock requires an aware datetime")
        self._tz = tz
        self._instant = instant.astimezone(tz)

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        self._instant = instant.astimezone(self._tz)

    def advance(self, delta: timedelta) -> None:
        self._instant = self._instant + delta
