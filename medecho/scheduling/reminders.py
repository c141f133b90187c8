"""Notification records for booking events and upcoming appointments."""

import uuid
from datetime import datetime, timedelta
from typing import Iterable, Optional

from medecho.scheduling.clock import DEFAULT_CALENDAR, CalendarPolicy
from medecho.scheduling.models import (
    AppNotification,
    Appointment,
    AppointmentStatus,
    Modality,
    NotificationType,
    parse_time,
)


def _new_id() -> str:
    return uuid.uuid4().hex


def _with_whom(appointment: Appointment) -> str:
    return appointment.provider_name or "your doctor"


def booking_confirmation(appointment: Appointment) -> AppNotification:
    kind = "virtual consultation" if appointment.modality == Modality.VIRTUAL else "visit"
    return AppNotification(
        id=_new_id(),
        user_id=appointment.subject_id,
        title="Appointment booked",
        message=(
            f"Your {kind} with {_with_whom(appointment)} is booked for "
            f"{appointment.date} at {appointment.time}."
        ),
        type=NotificationType.SUCCESS,
        appointment_id=appointment.id,
    )


def cancellation_alert(appointment: Appointment) -> AppNotification:
    return AppNotification(
        id=_new_id(),
        user_id=appointment.subject_id,
        title="Appointment cancelled",
        message=(
            f"Your appointment with {_with_whom(appointment)} on "
            f"{appointment.date} at {appointment.time} was cancelled."
        ),
        type=NotificationType.ALERT,
        appointment_id=appointment.id,
    )


def upcoming_reminders(
    appointments: Iterable[Appointment],
    user_id: str,
    now: datetime,
    lead: timedelta = timedelta(hours=24),
    calendar: Optional[CalendarPolicy] = None,
) -> list[AppNotification]:
    """Reminders for the user's pending appointments starting in ``[now, now + lead)``.

    The user may be either side of the appointment. Results are ordered by
    start time.
    """
    calendar = calendar or DEFAULT_CALENDAR
    upcoming: list[tuple[datetime, Appointment]] = []

    for appt in appointments:
        if appt.status != AppointmentStatus.PENDING:
            continue
        if user_id not in (appt.subject_id, appt.provider_id):
            continue
        minutes = parse_time(appt.time)
        if minutes is None:
            continue
        starts = calendar.starts_at(appt.date, minutes)
        if starts is not None and now <= starts < now + lead:
            upcoming.append((starts, appt))

    upcoming.sort(key=lambda pair: pair[0])

    reminders = []
    for starts, appt in upcoming:
        other = appt.subject_name if user_id == appt.provider_id else appt.provider_name
        hours = int((starts - now).total_seconds() // 3600)
        when = "within the hour" if hours == 0 else f"in {hours}h"
        with_whom = f" with {other}" if other else ""
        reminders.append(
            AppNotification(
                id=_new_id(),
                user_id=user_id,
                title="Upcoming appointment",
                message=f"Your appointment{with_whom} on {appt.date} at {appt.time} starts {when}.",
                type=NotificationType.REMINDER,
                appointment_id=appt.id,
            )
        )
    return reminders
