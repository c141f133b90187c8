"""CRUD repositories for the clinic database."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional, Sequence

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from medecho.core.models import AppointmentDB, NotificationDB, ReportDB, UserDB
from medecho.core.schemas import MedicalReport, UserRole, Vitals
from medecho.scheduling.errors import (
    ProviderNotFoundError,
    SlotConflictError,
    StaleProfileError,
)
from medecho.scheduling.models import (
    AppNotification,
    Appointment,
    AppointmentStatus,
    Modality,
    NotificationType,
    ProviderAvailabilityProfile,
)

logger = logging.getLogger(__name__)


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **kwargs) -> UserDB:
        if "email" in kwargs:
            kwargs["email"] = kwargs["email"].strip().lower()
        user = UserDB(**kwargs)
        self.session.add(user)
        await self.session.flush()
        return user

    async def get_by_id(self, user_id: str) -> Optional[UserDB]:
        return await self.session.get(UserDB, user_id)

    async def get_by_email(self, email: str) -> Optional[UserDB]:
        stmt = select(UserDB).where(UserDB.email == email.strip().lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_doctors(self, search: Optional[str] = None, limit: int = 100) -> Sequence[UserDB]:
        stmt = select(UserDB).where(UserDB.role == UserRole.DOCTOR.value)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    UserDB.name.ilike(pattern),
                    UserDB.specialization.ilike(pattern),
                )
            )
        stmt = stmt.order_by(UserDB.name).limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def update(self, user_id: str, **kwargs) -> Optional[UserDB]:
        user = await self.get_by_id(user_id)
        if not user:
            return None
        for k, v in kwargs.items():
            if v is not None:
                setattr(user, k, v)
        user.updated_at = datetime.now(timezone.utc)
        await self.session.flush()
        return user


class AppointmentRepository:
    """Appointments in and out as domain ``Appointment`` models."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_domain(row: AppointmentDB) -> Appointment:
        return Appointment(
            id=row.id,
            provider_id=row.provider_id,
            subject_id=row.subject_id,
            date=row.date,
            time=row.time,
            status=AppointmentStatus(row.status),
            modality=Modality(row.modality),
            provider_name=row.provider_name,
            subject_name=row.subject_name,
            created_at=row.created_at,
        )

    async def list(
        self,
        provider_id: Optional[str] = None,
        subject_id: Optional[str] = None,
    ) -> list[Appointment]:
        stmt = select(AppointmentDB)
        if provider_id is not None:
            stmt = stmt.where(AppointmentDB.provider_id == provider_id)
        if subject_id is not None:
            stmt = stmt.where(AppointmentDB.subject_id == subject_id)
        stmt = stmt.order_by(AppointmentDB.date, AppointmentDB.time)
        result = await self.session.execute(stmt)
        return [self._to_domain(row) for row in result.scalars().all()]

    async def get(self, appointment_id: str) -> Optional[Appointment]:
        row = await self.session.get(AppointmentDB, appointment_id)
        return self._to_domain(row) if row else None

    async def create(self, appointment: Appointment) -> Appointment:
        row = AppointmentDB(
            id=appointment.id,
            provider_id=appointment.provider_id,
            subject_id=appointment.subject_id,
            provider_name=appointment.provider_name,
            subject_name=appointment.subject_name,
            date=appointment.date,
            time=appointment.time,
            status=appointment.status.value,
            modality=appointment.modality.value,
            created_at=appointment.created_at,
        )
        async with self._slot_write(appointment):
            self.session.add(row)
        return self._to_domain(row)

    async def update(self, appointment: Appointment) -> Appointment:
        row = await self.session.get(AppointmentDB, appointment.id)
        if row is None:
            raise LookupError(f"Appointment not found: {appointment.id}")
        async with self._slot_write(appointment):
            row.status = appointment.status.value
            row.modality = appointment.modality.value
            row.date = appointment.date
            row.time = appointment.time
            row.updated_at = datetime.now(timezone.utc)
        return self._to_domain(row)

    async def delete(self, appointment_id: str) -> bool:
        stmt = delete(AppointmentDB).where(AppointmentDB.id == appointment_id)
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    @asynccontextmanager
    async def _slot_write(self, appointment: Appointment) -> AsyncIterator[None]:
        """Flush the enclosed change in a SAVEPOINT.

        A clash on the active-slot index undoes only this write; the caller's
        transaction stays usable.
        """
        try:
            async with self.session.begin_nested():
                yield
        except IntegrityError as e:
            raise SlotConflictError(
                f"Provider {appointment.provider_id} already booked at "
                f"{appointment.date} {appointment.time}"
            ) from e


class ProfileRepository:
    """Availability profiles stored as JSON on the provider's user row."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, provider_id: str) -> Optional[ProviderAvailabilityProfile]:
        """Stored profile, a default one for doctors without one, else None."""
        user = await self.session.get(UserDB, provider_id)
        if user is None or user.role != UserRole.DOCTOR.value:
            return None
        data = dict(user.availability or {})
        data["provider_id"] = provider_id
        data["version"] = user.availability_version or 0
        return ProviderAvailabilityProfile.model_validate(data)

    async def save(self, profile: ProviderAvailabilityProfile) -> ProviderAvailabilityProfile:
        """Persist *profile* if nobody else saved since it was read.

        Raises ``StaleProfileError`` when the stored version differs from the
        profile's version. The returned profile carries the new version.
        """
        user = await self.session.get(UserDB, profile.provider_id)
        if user is None or user.role != UserRole.DOCTOR.value:
            raise ProviderNotFoundError(f"No availability profile for provider {profile.provider_id}")

        stored = user.availability_version or 0
        if stored != profile.version:
            raise StaleProfileError(profile.provider_id, profile.version, stored)

        user.availability = profile.model_dump(mode="json", exclude={"provider_id", "version"})
        user.availability_version = stored + 1
        user.updated_at = datetime.now(timezone.utc)
        await self.session.flush()
        logger.debug(f"Saved availability for {profile.provider_id} at version {stored + 1}")
        return profile.model_copy(update={"version": stored + 1})


class ReportRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_schema(row: ReportDB) -> MedicalReport:
        return MedicalReport(
            id=row.id,
            patient_id=row.patient_id,
            doctor_id=row.doctor_id,
            doctor_name=row.doctor_name,
            date=row.date,
            summary=row.summary or "",
            diagnosis=row.diagnosis or "",
            prescription=list(row.prescription or []),
            ai_confidence=row.ai_confidence,
            input_language=row.input_language,
            vitals=Vitals(**row.vitals) if row.vitals else None,
        )

    async def create(self, report: MedicalReport) -> MedicalReport:
        row = ReportDB(
            id=report.id,
            patient_id=report.patient_id,
            doctor_id=report.doctor_id,
            doctor_name=report.doctor_name,
            date=report.date,
            summary=report.summary,
            diagnosis=report.diagnosis,
            prescription=list(report.prescription),
            ai_confidence=report.ai_confidence,
            input_language=report.input_language,
            vitals=report.vitals.model_dump() if report.vitals else None,
        )
        self.session.add(row)
        await self.session.flush()
        return self._to_schema(row)

    async def list_for_patient(self, patient_id: str) -> list[MedicalReport]:
        stmt = (
            select(ReportDB)
            .where(ReportDB.patient_id == patient_id)
            .order_by(ReportDB.date.desc(), ReportDB.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return [self._to_schema(row) for row in result.scalars().all()]

    async def list_for_doctor(self, doctor_id: str) -> list[MedicalReport]:
        stmt = (
            select(ReportDB)
            .where(ReportDB.doctor_id == doctor_id)
            .order_by(ReportDB.date.desc(), ReportDB.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return [self._to_schema(row) for row in result.scalars().all()]


class NotificationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_domain(row: NotificationDB) -> AppNotification:
        return AppNotification(
            id=row.id,
            user_id=row.user_id,
            title=row.title,
            message=row.message,
            type=NotificationType(row.type),
            created_at=row.created_at,
            is_read=row.is_read,
            appointment_id=row.appointment_id,
        )

    async def create(self, notification: AppNotification) -> AppNotification:
        row = NotificationDB(
            id=notification.id,
            user_id=notification.user_id,
            title=notification.title,
            message=notification.message,
            type=notification.type.value,
            is_read=notification.is_read,
            appointment_id=notification.appointment_id,
            created_at=notification.created_at,
        )
        self.session.add(row)
        await self.session.flush()
        return self._to_domain(row)

    async def list_for_user(self, user_id: str, unread_only: bool = False) -> list[AppNotification]:
        stmt = select(NotificationDB).where(NotificationDB.user_id == user_id)
        if unread_only:
            stmt = stmt.where(NotificationDB.is_read.is_(False))
        stmt = stmt.order_by(NotificationDB.created_at.desc())
        result = await self.session.execute(stmt)
        return [self._to_domain(row) for row in result.scalars().all()]

    async def mark_read(self, notification_id: str, user_id: str) -> bool:
        row = await self.session.get(NotificationDB, notification_id)
        if row is None or row.user_id != user_id:
            return False
        row.is_read = True
        await self.session.flush()
        return True


class SqlSchedulingBackend:
    """``SchedulingBackend`` over one database session."""

    def __init__(self, session: AsyncSession):
        self.appointments = AppointmentRepository(session)
        self.profiles = ProfileRepository(session)

    async def list_appointments(self, provider_id: Optional[str] = None) -> list[Appointment]:
        return await self.appointments.list(provider_id=provider_id)

    async def get_appointment(self, appointment_id: str) -> Optional[Appointment]:
        return await self.appointments.get(appointment_id)

    async def create_appointment(self, appointment: Appointment) -> Appointment:
        return await self.appointments.create(appointment)

    async def update_appointment(self, appointment: Appointment) -> Appointment:
        return await self.appointments.update(appointment)

    async def delete_appointment(self, appointment_id: str) -> bool:
        return await self.appointments.delete(appointment_id)

    async def get_profile(self, provider_id: str) -> Optional[ProviderAvailabilityProfile]:
        return await self.profiles.get(provider_id)

    async def save_profile(self, profile: ProviderAvailabilityProfile) -> ProviderAvailabilityProfile:
        return await self.profiles.save(profile)
