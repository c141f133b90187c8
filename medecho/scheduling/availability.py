"""Availability resolution: which slots of a date are still bookable."""

import logging
from typing import Iterable, Optional

from medecho.scheduling.clock import DEFAULT_CALENDAR, CalendarPolicy
from medecho.scheduling.models import (
    Appointment,
    ProviderAvailabilityProfile,
    format_time,
    parse_time,
)
from medecho.scheduling.slots import DEFAULT_STEP_MINUTES, generate_slot_minutes

logger = logging.getLogger(__name__)


def _canonical_time(value: str) -> str:
    minutes = parse_time(value)
    return format_time(minutes) if minutes is not None else value


def is_bookable(
    provider_id: str,
    date: str,
    time: str,
    appointments: Iterable[Appointment],
) -> bool:
    """True iff no non-cancelled appointment holds (provider, date, time)."""
    wanted = _canonical_time(time)
    return not any(
        a.provider_id == provider_id
        and a.date == date
        and a.time == wanted
        and a.is_active
        for a in appointments
    )


def resolve(
    date: str,
    profile: Optional[ProviderAvailabilityProfile],
    booked: Iterable[Appointment],
    *,
    step_minutes: int = DEFAULT_STEP_MINUTES,
    calendar: Optional[CalendarPolicy] = None,
) -> list[str]:
    """Return the bookable ``HH:MM`` start times for *date*.

    Algorithm:
        1. Map the date to a weekday (Sunday=0) via the calendar policy
        2. Skip missing or inactive days
        3. Concatenate generated slots of every range in declaration order
           (overlapping ranges may yield the same start twice)
        4. Remove slots covered by any blackout for the date
        5. Remove slots held by a non-cancelled appointment
    """
    if profile is None:
        return []

    calendar = calendar or DEFAULT_CALENDAR
    day_index = calendar.day_index(date)
    if day_index is None:
        logger.debug(f"Unparseable date {date!r}; no availability")
        return []

    day = profile.day(day_index)
    if day is None or not day.is_active:
        return []

    candidates: list[int] = []
    for working_range in day.ranges:
        start, end = working_range.start_minutes, working_range.end_minutes
        if start is None or end is None:
            continue
        candidates.extend(generate_slot_minutes(start, end, step_minutes))

    blocks = profile.blocks_on(date)
    if blocks:
        candidates = [m for m in candidates if not any(b.covers(m) for b in blocks)]

    booked_today = [a for a in booked if a.provider_id == profile.provider_id and a.date == date]

    return [
        slot
        for slot in (format_time(m) for m in candidates)
        if is_bookable(profile.provider_id, date, slot, booked_today)
    ]
