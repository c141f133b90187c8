"""Pydantic models for the scheduling service."""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

MINUTES_PER_DAY = 24 * 60

DEFAULT_RANGE_START = "09:00"
DEFAULT_RANGE_END = "17:00"

# Sunday=0 .. Saturday=6
WEEKDAY_INDEXES = (1, 2, 3, 4, 5)
DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_time(value: Optional[str]) -> Optional[int]:
    """Parse an ``HH:MM`` string into minutes since midnight.

    Returns None for blank, malformed or out-of-range values instead of
    raising, so half-edited schedules can be evaluated safely.
    """
    if not value:
        return None
    m = _TIME_RE.match(value.strip())
    if not m:
        return None
    hours, minutes = int(m.group(1)), int(m.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def format_time(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"Time of day out of range: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_time(value: str) -> str:
    """Canonicalise a time string (``9:00`` -> ``09:00``)."""
    minutes = parse_time(value)
    if minutes is None:
        raise ValueError(f"Invalid time (expected HH:MM): {value!r}")
    return format_time(minutes)


class AppointmentStatus(str, Enum):
    """Appointment lifecycle statuses."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Modality(str, Enum):
    """How the consultation takes place."""

    VIRTUAL = "VIRTUAL"
    IN_PERSON = "IN-PERSON"


class WorkingRange(BaseModel):
    """A contiguous window of a day during which bookings are accepted.

    Values are kept as written; an empty or inverted range is legal here and
    simply yields no slots.
    """

    start: str = DEFAULT_RANGE_START
    end: str = DEFAULT_RANGE_END

    @property
    def start_minutes(self) -> Optional[int]:
        return parse_time(self.start)

    @property
    def end_minutes(self) -> Optional[int]:
        return parse_time(self.end)

    @property
    def is_valid(self) -> bool:
        start, end = self.start_minutes, self.end_minutes
        return start is not None and end is not None and start < end


class DaySchedule(BaseModel):
    """Weekly template for one weekday."""

    day_index: int = Field(ge=0, le=6, description="0=Sunday .. 6=Saturday")
    ranges: list[WorkingRange] = Field(default_factory=list)
    is_active: bool = False

    @property
    def day_name(self) -> str:
        return DAY_NAMES[self.day_index]


class BlockedSlot(BaseModel):
    """An ad-hoc blackout for one calendar date."""

    id: str
    date: str
    reason: str
    is_all_day: bool = True
    range: Optional[WorkingRange] = None

    def covers(self, slot_minutes: int) -> bool:
        """Whether a slot starting at *slot_minutes* falls inside this block."""
        if self.is_all_day:
            return True
        if self.range is None:
            return False
        start, end = self.range.start_minutes, self.range.end_minutes
        if start is None or end is None:
            return False
        return start <= slot_minutes < end


def default_day_schedule(day_index: int) -> DaySchedule:
    """Default template: 09:00-17:00, active Monday to Friday."""
    return DaySchedule(
        day_index=day_index,
        ranges=[WorkingRange()],
        is_active=day_index in WEEKDAY_INDEXES,
    )


def default_week() -> list[DaySchedule]:
    return [default_day_schedule(i) for i in range(7)]


class ProviderAvailabilityProfile(BaseModel):
    """A provider's weekly template plus date-specific blackouts."""

    provider_id: str
    schedules: list[DaySchedule] = Field(default_factory=default_week)
    blocked_slots: list[BlockedSlot] = Field(default_factory=list)
    version: int = Field(default=0, ge=0, description="Optimistic concurrency counter")

    @model_validator(mode="after")
    def _one_schedule_per_day(self) -> "ProviderAvailabilityProfile":
        by_day: dict[int, DaySchedule] = {}
        for sched in self.schedules:
            by_day.setdefault(sched.day_index, sched)
        self.schedules = [by_day.get(i) or default_day_schedule(i) for i in range(7)]
        return self

    def day(self, day_index: int) -> Optional[DaySchedule]:
        if 0 <= day_index < len(self.schedules):
            return self.schedules[day_index]
        return None

    def blocks_on(self, date: str) -> list[BlockedSlot]:
        return [b for b in self.blocked_slots if b.date == date]


class Appointment(BaseModel):
    """A booked consultation."""

    id: str
    provider_id: str
    subject_id: str
    date: str
    time: str
    status: AppointmentStatus = AppointmentStatus.PENDING
    modality: Modality = Modality.IN_PERSON
    provider_name: Optional[str] = None
    subject_name: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("date")
    @classmethod
    def _check_date(cls, v: str) -> str:
        if not _DATE_RE.match(v):
            raise ValueError(f"Invalid date (expected YYYY-MM-DD): {v!r}")
        return v

    @field_validator("time")
    @classmethod
    def _check_time(cls, v: str) -> str:
        return normalize_time(v)

    @property
    def is_active(self) -> bool:
        return self.status != AppointmentStatus.CANCELLED


class BookingRequest(BaseModel):
    """A patient's request to take a specific slot."""

    provider_id: str
    subject_id: str
    date: str
    time: str
    modality: Modality = Modality.IN_PERSON
    provider_name: Optional[str] = None
    subject_name: Optional[str] = None

    @field_validator("time")
    @classmethod
    def _check_time(cls, v: str) -> str:
        return normalize_time(v)


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    SLOT_UNAVAILABLE = "slot_unavailable"


class BookingResult(BaseModel):
    """Outcome of a booking or reopen attempt."""

    status: BookingStatus
    appointment: Optional[Appointment] = None
    alternatives: list[str] = Field(
        default_factory=list,
        description="Freshly resolved slots when the requested one is gone",
    )

    @property
    def ok(self) -> bool:
        return self.status == BookingStatus.CONFIRMED


class NotificationType(str, Enum):
    REMINDER = "REMINDER"
    SUCCESS = "SUCCESS"
    ALERT = "ALERT"


class AppNotification(BaseModel):
    """A banner/reminder addressed to one user."""

    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    is_read: bool = False
    appointment_id: Optional[str] = None
