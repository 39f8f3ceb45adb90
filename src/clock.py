"""
Reference Clock

DESIGN DECISION: "today" is never read from a global inside the ledger or
the valuation engine. Callers hand in a clock, so a test can pin any date
and a server can decide which timezone defines the calendar day.
"""

from datetime import date, datetime, timezone
from typing import Optional, Protocol, Union
from zoneinfo import ZoneInfo


DateLike = Union[date, str]


class ReferenceClock(Protocol):
    """Anything that can say what time it is now."""

    def now(self) -> datetime:
        ...

    def today(self) -> date:
        ...


class SystemClock:
    """Wall-clock time in a configured timezone."""

    def __init__(self, tz_name: str = "UTC"):
        self._tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.now(self._tz)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """A clock pinned to one instant. Used by tests and replays."""

    def __init__(self, instant: Union[datetime, date, str]):
        if isinstance(instant, str):
            instant = datetime.fromisoformat(instant)
        if not isinstance(instant, datetime):
            instant = datetime(instant.year, instant.month, instant.day, 12, 0)
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def today(self) -> date:
        return self._instant.date()

    def advance_to(self, instant: Union[datetime, date, str]) -> None:
        """Move the pinned instant."""
        self._instant = FixedClock(instant).now()


def to_date(value: Optional[DateLike], default: Optional[date] = None) -> date:
    """
    Normalize a date or YYYY-MM-DD string.

    Raises ValueError for malformed strings. Falls back to `default`
    when value is None.
    """
    if value is None:
        if default is None:
            raise ValueError("A date is required")
        return default
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip())
