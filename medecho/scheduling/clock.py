"""Calendar policy: which weekday a date falls on, and what 'today' is."""

import re
from datetime import date, datetime, timezone
from typing import Callable, Optional

import pytz


ISO_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def parse_date(value: str) -> Optional[date]:
    """Parse exactly ``YYYY-MM-DD``; None for anything else.

    ``date.fromisoformat`` alone also takes ``20300107`` and week dates, which
    would never match the stored ``YYYY-MM-DD`` strings.
    """
    if not isinstance(value, str) or not ISO_DATE.fullmatch(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


class CalendarPolicy:
    """Single place that maps calendar dates to weekday indexes.

    Dates are plain calendar dates with no time component, so the weekday is
    the same in every timezone (the UTC day-of-week of midnight UTC). Only
    ``today()`` depends on the clinic timezone, and the clock is injectable so
    tests can pin it.
    """

    def __init__(
        self,
        tz: str = "UTC",
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.tz = pytz.timezone(tz)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def now(self) -> datetime:
        current = self._clock()
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        return current.astimezone(self.tz)

    def today(self) -> str:
        return self.now().date().isoformat()

    def day_index(self, value: str) -> Optional[int]:
        """Weekday index with Sunday=0 .. Saturday=6."""
        parsed = parse_date(value)
        if parsed is None:
            return None
        return parsed.isoweekday() % 7

    def starts_at(self, day: str, time_minutes: int) -> Optional[datetime]:
        """Aware datetime for a slot on *day* in the clinic timezone."""
        parsed = parse_date(day)
        if parsed is None:
            return None
        hours, minutes = divmod(time_minutes, 60)
        return self.tz.localize(datetime(parsed.year, parsed.month, parsed.day, hours, minutes))


DEFAULT_CALENDAR = CalendarPolicy()


def calendar_from_settings() -> CalendarPolicy:
    from medecho.config import get_settings

    return CalendarPolicy(tz=get_settings().clinic_timezone)
