"""Editing operations over a provider's availability profile.

Every operation returns a new profile and leaves its input untouched. A
rejected edit (removing the last range of a day, a blackout without a reason,
an unknown index, ...) returns the input object itself, so callers can detect
it with ``result is profile``. Nothing here raises: these states arise from
normal half-finished edits, not from exceptional conditions.
"""

import logging
import uuid
from enum import Enum
from typing import Literal, Optional

from medecho.scheduling.clock import parse_date
from medecho.scheduling.models import (
    WEEKDAY_INDEXES,
    BlockedSlot,
    DaySchedule,
    ProviderAvailabilityProfile,
    WorkingRange,
)

logger = logging.getLogger(__name__)

RangeField = Literal["start", "end"]


class RejectionReason(str, Enum):
    UNKNOWN_DAY = "unknown_day"
    UNKNOWN_RANGE = "unknown_range"
    LAST_RANGE = "last_range"
    UNKNOWN_FIELD = "unknown_field"
    EMPTY_SOURCE = "empty_source"
    MISSING_DATE = "missing_date"
    INVALID_DATE = "invalid_date"
    MISSING_REASON = "missing_reason"
    MISSING_TIMES = "missing_times"
    DUPLICATE_ID = "duplicate_id"
    NOT_FOUND = "not_found"


def _reject(
    profile: ProviderAvailabilityProfile, op: str, reason: RejectionReason
) -> ProviderAvailabilityProfile:
    logger.debug(f"Rejected {op} on profile {profile.provider_id}: {reason.value}")
    return profile


def _with_day(
    profile: ProviderAvailabilityProfile, day: DaySchedule
) -> ProviderAvailabilityProfile:
    updated = profile.model_copy(deep=True)
    updated.schedules[day.day_index] = day
    return updated


def set_day_active(
    profile: ProviderAvailabilityProfile, day_index: int, active: bool
) -> ProviderAvailabilityProfile:
    """Toggle a weekday on or off. Ranges are kept either way."""
    day = profile.day(day_index)
    if day is None:
        return _reject(profile, "set_day_active", RejectionReason.UNKNOWN_DAY)

    new_day = day.model_copy(deep=True)
    new_day.is_active = active
    # An active day always carries at least one range.
    if active and not new_day.ranges:
        new_day.ranges.append(WorkingRange())
    return _with_day(profile, new_day)


def add_range(profile: ProviderAvailabilityProfile, day_index: int) -> ProviderAvailabilityProfile:
    """Append a default 09:00-17:00 range to a weekday."""
    day = profile.day(day_index)
    if day is None:
        return _reject(profile, "add_range", RejectionReason.UNKNOWN_DAY)

    new_day = day.model_copy(deep=True)
    new_day.ranges.append(WorkingRange())
    return _with_day(profile, new_day)


def remove_range(
    profile: ProviderAvailabilityProfile, day_index: int, range_index: int
) -> ProviderAvailabilityProfile:
    """Remove one range; the last remaining range of a day cannot be removed."""
    day = profile.day(day_index)
    if day is None:
        return _reject(profile, "remove_range", RejectionReason.UNKNOWN_DAY)
    if not 0 <= range_index < len(day.ranges):
        return _reject(profile, "remove_range", RejectionReason.UNKNOWN_RANGE)
    if len(day.ranges) <= 1:
        return _reject(profile, "remove_range", RejectionReason.LAST_RANGE)

    new_day = day.model_copy(deep=True)
    del new_day.ranges[range_index]
    return _with_day(profile, new_day)


def update_range_field(
    profile: ProviderAvailabilityProfile,
    day_index: int,
    range_index: int,
    field: RangeField,
    value: str,
) -> ProviderAvailabilityProfile:
    """Overwrite the start or end of a range.

    The value is stored verbatim; ``start < end`` is not checked here. The
    resolver treats an invalid range as producing no slots.
    """
    if field not in ("start", "end"):
        return _reject(profile, "update_range_field", RejectionReason.UNKNOWN_FIELD)
    day = profile.day(day_index)
    if day is None:
        return _reject(profile, "update_range_field", RejectionReason.UNKNOWN_DAY)
    if not 0 <= range_index < len(day.ranges):
        return _reject(profile, "update_range_field", RejectionReason.UNKNOWN_RANGE)

    new_day = day.model_copy(deep=True)
    setattr(new_day.ranges[range_index], field, value)
    return _with_day(profile, new_day)


def copy_ranges_to_weekdays(
    profile: ProviderAvailabilityProfile, source_day_index: int
) -> ProviderAvailabilityProfile:
    """Copy a day's ranges onto Monday..Friday and activate them.

    Saturday and Sunday are left alone. Each weekday receives its own copy of
    the ranges.
    """
    source = profile.day(source_day_index)
    if source is None:
        return _reject(profile, "copy_ranges_to_weekdays", RejectionReason.UNKNOWN_DAY)
    if not source.ranges:
        return _reject(profile, "copy_ranges_to_weekdays", RejectionReason.EMPTY_SOURCE)

    updated = profile.model_copy(deep=True)
    for idx in WEEKDAY_INDEXES:
        updated.schedules[idx] = DaySchedule(
            day_index=idx,
            ranges=[r.model_copy() for r in source.ranges],
            is_active=True,
        )
    return updated


def new_blocked_slot(
    date: str,
    reason: str,
    *,
    is_all_day: bool = True,
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> BlockedSlot:
    """Build a blackout entry with a fresh id.

    Timed entries keep whatever start/end was given (possibly blank) so that
    ``add_blocked_slot`` can decide whether to accept them.
    """
    return BlockedSlot(
        id=uuid.uuid4().hex,
        date=date,
        reason=reason,
        is_all_day=is_all_day,
        range=None if is_all_day else WorkingRange(start=start or "", end=end or ""),
    )


def add_blocked_slot(
    profile: ProviderAvailabilityProfile, blocked: BlockedSlot
) -> ProviderAvailabilityProfile:
    """Append a blackout. Requires a YYYY-MM-DD date and a reason; timed blocks need both times."""
    if not blocked.date.strip():
        return _reject(profile, "add_blocked_slot", RejectionReason.MISSING_DATE)
    if parse_date(blocked.date) is None:
        return _reject(profile, "add_blocked_slot", RejectionReason.INVALID_DATE)
    if not blocked.reason.strip():
        return _reject(profile, "add_blocked_slot", RejectionReason.MISSING_REASON)
    if not blocked.is_all_day and (
        blocked.range is None or not blocked.range.start.strip() or not blocked.range.end.strip()
    ):
        return _reject(profile, "add_blocked_slot", RejectionReason.MISSING_TIMES)
    if any(b.id == blocked.id for b in profile.blocked_slots):
        return _reject(profile, "add_blocked_slot", RejectionReason.DUPLICATE_ID)

    entry = blocked.model_copy(deep=True)
    if entry.is_all_day:
        entry.range = None

    updated = profile.model_copy(deep=True)
    updated.blocked_slots.append(entry)
    return updated


def remove_blocked_slot(
    profile: ProviderAvailabilityProfile, blocked_id: str
) -> ProviderAvailabilityProfile:
    if not any(b.id == blocked_id for b in profile.blocked_slots):
        return _reject(profile, "remove_blocked_slot", RejectionReason.NOT_FOUND)

    updated = profile.model_copy(deep=True)
    updated.blocked_slots = [b for b in updated.blocked_slots if b.id != blocked_id]
    return updated
