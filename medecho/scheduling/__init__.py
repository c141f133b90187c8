"""Scheduling service for MedEcho."""

from medecho.scheduling.availability import is_bookable, resolve
from medecho.scheduling.booking import BookingService, ProviderLocks, SchedulingBackend
from medecho.scheduling.clock import CalendarPolicy
from medecho.scheduling.errors import (
    AppointmentNotFoundError,
    InvalidTransitionError,
    ProviderNotFoundError,
    SchedulingError,
    SlotConflictError,
    StaleProfileError,
)
from medecho.scheduling.models import (
    AppNotification,
    Appointment,
    AppointmentStatus,
    BlockedSlot,
    BookingRequest,
    BookingResult,
    BookingStatus,
    DaySchedule,
    Modality,
    NotificationType,
    ProviderAvailabilityProfile,
    WorkingRange,
)
from medecho.scheduling.slots import generate_slots

__all__ = [
    "AppNotification",
    "Appointment",
    "AppointmentNotFoundError",
    "AppointmentStatus",
    "BlockedSlot",
    "BookingRequest",
    "BookingResult",
    "BookingService",
    "BookingStatus",
    "CalendarPolicy",
    "DaySchedule",
    "InvalidTransitionError",
    "Modality",
    "NotificationType",
    "ProviderAvailabilityProfile",
    "ProviderLocks",
    "ProviderNotFoundError",
    "SchedulingBackend",
    "SchedulingError",
    "SlotConflictError",
    "StaleProfileError",
    "WorkingRange",
    "generate_slots",
    "is_bookable",
    "resolve",
]
