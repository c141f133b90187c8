"""Booking workflow on top of the availability engine."""

import asyncio
import logging
import uuid
import weakref
from typing import Awaitable, Callable, Optional, Protocol

from medecho.scheduling.availability import is_bookable, resolve
from medecho.scheduling.clock import DEFAULT_CALENDAR, CalendarPolicy
from medecho.scheduling.errors import (
    AppointmentNotFoundError,
    InvalidTransitionError,
    ProviderNotFoundError,
    SlotConflictError,
    StaleProfileError,
)
from medecho.scheduling.models import (
    AppNotification,
    Appointment,
    AppointmentStatus,
    BookingRequest,
    BookingResult,
    BookingStatus,
    ProviderAvailabilityProfile,
)
from medecho.scheduling.reminders import booking_confirmation, cancellation_alert
from medecho.scheduling.slots import DEFAULT_STEP_MINUTES

logger = logging.getLogger(__name__)

Notifier = Callable[[AppNotification], Awaitable[None]]
ProfileEdit = Callable[[ProviderAvailabilityProfile], ProviderAvailabilityProfile]

_ALLOWED_TRANSITIONS: set[tuple[AppointmentStatus, AppointmentStatus]] = {
    (AppointmentStatus.PENDING, AppointmentStatus.COMPLETED),
    (AppointmentStatus.PENDING, AppointmentStatus.CANCELLED),
    (AppointmentStatus.COMPLETED, AppointmentStatus.PENDING),
    (AppointmentStatus.CANCELLED, AppointmentStatus.PENDING),
}


class SchedulingBackend(Protocol):
    """Persistence operations the booking workflow relies on."""

    async def list_appointments(self, provider_id: Optional[str] = None) -> list[Appointment]: ...

    async def get_appointment(self, appointment_id: str) -> Optional[Appointment]: ...

    async def create_appointment(self, appointment: Appointment) -> Appointment: ...

    async def update_appointment(self, appointment: Appointment) -> Appointment: ...

    async def delete_appointment(self, appointment_id: str) -> bool: ...

    async def get_profile(self, provider_id: str) -> Optional[ProviderAvailabilityProfile]: ...

    async def save_profile(self, profile: ProviderAvailabilityProfile) -> ProviderAvailabilityProfile: ...


class ProviderLocks:
    """One asyncio lock per provider id, so slot checks and writes for a
    provider run one at a time within this process.

    The lock covers the check and the flush, not the caller's commit; the
    active-slot unique index is what rejects a double booking across
    transactions. Entries are weak and vanish once no task holds or awaits them.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        return len(self._locks)

    def for_provider(self, provider_id: str) -> asyncio.Lock:
        lock = self._locks.get(provider_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[provider_id] = lock
        return lock


class BookingService:
    """Confirms bookings, changes appointment status and edits profiles."""

    def __init__(
        self,
        backend: SchedulingBackend,
        *,
        calendar: Optional[CalendarPolicy] = None,
        step_minutes: int = DEFAULT_STEP_MINUTES,
        notify: Optional[Notifier] = None,
        locks: Optional[ProviderLocks] = None,
    ) -> None:
        self.backend = backend
        self.calendar = calendar or DEFAULT_CALENDAR
        self.step_minutes = step_minutes
        self._notify = notify
        self._locks = locks or ProviderLocks()

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    async def available_slots(self, provider_id: str, date: str) -> list[str]:
        """Bookable start times for a provider on *date* (empty if unknown)."""
        profile = await self.backend.get_profile(provider_id)
        if profile is None:
            return []
        appointments = await self.backend.list_appointments(provider_id)
        return self._resolve(date, profile, appointments)

    def _resolve(
        self,
        date: str,
        profile: Optional[ProviderAvailabilityProfile],
        appointments: list[Appointment],
    ) -> list[str]:
        return resolve(
            date, profile, appointments,
            step_minutes=self.step_minutes, calendar=self.calendar,
        )

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    async def confirm_booking(self, request: BookingRequest) -> BookingResult:
        """Book the requested slot if it is still free.

        The slot list shown to the patient may be stale, so appointments and
        the profile are fetched again here before anything is written.
        """
        async with self._locks.for_provider(request.provider_id):
            profile = await self.backend.get_profile(request.provider_id)
            appointments = await self.backend.list_appointments(request.provider_id)
            fresh = self._resolve(request.date, profile, appointments)

            if not is_bookable(request.provider_id, request.date, request.time, appointments) or (
                request.time not in fresh
            ):
                logger.info(
                    f"Slot {request.date} {request.time} for provider "
                    f"{request.provider_id} is no longer available"
                )
                return BookingResult(status=BookingStatus.SLOT_UNAVAILABLE, alternatives=fresh)

            appointment = Appointment(
                id=f"a-{uuid.uuid4().hex[:12]}",
                provider_id=request.provider_id,
                subject_id=request.subject_id,
                date=request.date,
                time=request.time,
                status=AppointmentStatus.PENDING,
                modality=request.modality,
                provider_name=request.provider_name,
                subject_name=request.subject_name,
            )
            try:
                saved = await self.backend.create_appointment(appointment)
            except SlotConflictError:
                logger.warning(
                    f"Store rejected {request.date} {request.time} for provider "
                    f"{request.provider_id}: slot already taken"
                )
                appointments = await self.backend.list_appointments(request.provider_id)
                return BookingResult(
                    status=BookingStatus.SLOT_UNAVAILABLE,
                    alternatives=self._resolve(request.date, profile, appointments),
                )

        logger.info(f"Booked {saved.id} for provider {saved.provider_id} at {saved.date} {saved.time}")
        await self._emit(booking_confirmation(saved))
        return BookingResult(status=BookingStatus.CONFIRMED, appointment=saved)

    async def change_status(self, appointment_id: str, status: AppointmentStatus) -> BookingResult:
        """Move an appointment through its lifecycle.

        Reopening a cancelled appointment re-checks the slot, because another
        patient may have taken it in the meantime.
        """
        appointment = await self.backend.get_appointment(appointment_id)
        if appointment is None:
            raise AppointmentNotFoundError(f"Appointment not found: {appointment_id}")

        if appointment.status == status:
            return BookingResult(status=BookingStatus.CONFIRMED, appointment=appointment)

        if (appointment.status, status) not in _ALLOWED_TRANSITIONS:
            raise InvalidTransitionError(
                f"Cannot move appointment from {appointment.status.value} to {status.value}"
            )

        updated = appointment.model_copy(update={"status": status})

        if appointment.status == AppointmentStatus.CANCELLED:
            async with self._locks.for_provider(appointment.provider_id):
                others = [
                    a for a in await self.backend.list_appointments(appointment.provider_id)
                    if a.id != appointment.id
                ]
                if not is_bookable(appointment.provider_id, appointment.date, appointment.time, others):
                    profile = await self.backend.get_profile(appointment.provider_id)
                    return BookingResult(
                        status=BookingStatus.SLOT_UNAVAILABLE,
                        appointment=appointment,
                        alternatives=self._resolve(appointment.date, profile, others),
                    )
                try:
                    saved = await self.backend.update_appointment(updated)
                except SlotConflictError:
                    return BookingResult(status=BookingStatus.SLOT_UNAVAILABLE, appointment=appointment)
        else:
            saved = await self.backend.update_appointment(updated)

        logger.info(f"Appointment {saved.id}: {appointment.status.value} -> {saved.status.value}")
        if saved.status == AppointmentStatus.CANCELLED:
            await self._emit(cancellation_alert(saved))
        return BookingResult(status=BookingStatus.CONFIRMED, appointment=saved)

    async def delete_appointment(self, appointment_id: str) -> bool:
        """Hard-delete an appointment. Returns False if it did not exist."""
        deleted = await self.backend.delete_appointment(appointment_id)
        if deleted:
            logger.info(f"Deleted appointment {appointment_id}")
        return deleted

    # ------------------------------------------------------------------
    # Profile edits
    # ------------------------------------------------------------------

    async def edit_profile(
        self,
        provider_id: str,
        edit: ProfileEdit,
        expected_version: Optional[int] = None,
    ) -> ProviderAvailabilityProfile:
        """Apply a schedule edit and persist it.

        Rejected edits are not written. When *expected_version* is given and
        the stored profile has moved on, ``StaleProfileError`` is raised
        instead of overwriting someone else's change.
        """
        profile = await self.backend.get_profile(provider_id)
        if profile is None:
            raise ProviderNotFoundError(f"No availability profile for provider {provider_id}")
        if expected_version is not None and expected_version != profile.version:
            raise StaleProfileError(provider_id, expected_version, profile.version)

        updated = edit(profile)
        if updated is profile:
            return profile
        return await self.backend.save_profile(updated)

    async def _emit(self, notification: AppNotification) -> None:
        if self._notify is not None:
            await self._notify(notification)
