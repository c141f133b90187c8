"""Appointment booking and lifecycle endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from medecho.api.dependencies import get_booking_service, get_current_user, get_session_context, require_role
from medecho.core.database import get_db
from medecho.core.repository import AppointmentRepository, UserRepository
from medecho.core.schemas import UserProfile, UserRole
from medecho.core.session import SessionContext
from medecho.scheduling import (
    Appointment,
    AppointmentNotFoundError,
    AppointmentStatus,
    BookingRequest,
    BookingResult,
    BookingService,
    InvalidTransitionError,
    Modality,
)
from medecho.scheduling.clock import parse_date
from medecho.scheduling.models import normalize_time

router = APIRouter(prefix="/appointments")


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class AppointmentCreate(BaseModel):
    provider_id: str
    date: str
    time: str
    modality: Modality = Modality.IN_PERSON

    @field_validator("date")
    @classmethod
    def _check_date(cls, v: str) -> str:
        if parse_date(v) is None:
            raise ValueError(f"Invalid date (expected YYYY-MM-DD): {v!r}")
        return v

    @field_validator("time")
    @classmethod
    def _check_time(cls, v: str) -> str:
        return normalize_time(v)


class StatusUpdate(BaseModel):
    status: AppointmentStatus


def _unavailable(result: BookingResult) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={
            "detail": "Requested slot is no longer available",
            "alternatives": result.alternatives,
        },
    )


async def _participating(
    appointment_id: str,
    user: UserProfile,
    service: BookingService,
) -> Appointment:
    """Load an appointment the user is party to (admins see all)."""
    appointment = await service.backend.get_appointment(appointment_id)
    if appointment is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    if user.role != UserRole.ADMIN and user.id not in (appointment.subject_id, appointment.provider_id):
        raise HTTPException(status_code=403, detail="Not your appointment")
    return appointment


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("", response_model=BookingResult, status_code=201)
async def book_appointment(
    body: AppointmentCreate,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
    service: BookingService = Depends(get_booking_service),
):
    patient = require_role(session, UserRole.PATIENT)

    provider = await UserRepository(db).get_by_id(body.provider_id)
    if provider is None or provider.role != UserRole.DOCTOR.value:
        raise HTTPException(status_code=404, detail="Provider not found")

    result = await service.confirm_booking(
        BookingRequest(
            provider_id=body.provider_id,
            subject_id=patient.id,
            date=body.date,
            time=body.time,
            modality=body.modality,
            provider_name=provider.name,
            subject_name=patient.name,
        )
    )
    if not result.ok:
        return _unavailable(result)
    return result


@router.get("", response_model=list[Appointment])
async def list_appointments(
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
) -> list[Appointment]:
    """The caller's own appointments: as patient, as provider, or all for admins."""
    repo = AppointmentRepository(db)
    if current_user.role == UserRole.PATIENT:
        return await repo.list(subject_id=current_user.id)
    if current_user.role == UserRole.DOCTOR:
        return await repo.list(provider_id=current_user.id)
    return await repo.list()


@router.patch("/{appointment_id}/status", response_model=BookingResult)
async def change_status(
    appointment_id: str,
    body: StatusUpdate,
    current_user: UserProfile = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    await _participating(appointment_id, current_user, service)
    try:
        result = await service.change_status(appointment_id, body.status)
    except AppointmentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not result.ok:
        return _unavailable(result)
    return result


@router.delete("/{appointment_id}", status_code=204)
async def delete_appointment(
    appointment_id: str,
    current_user: UserProfile = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> Response:
    await _participating(appointment_id, current_user, service)
    if not await service.delete_appointment(appointment_id):
        raise HTTPException(status_code=404, detail="Appointment not found")
    return Response(status_code=204)


@router.get("/{appointment_id}", response_model=Appointment)
async def get_appointment(
    appointment_id: str,
    current_user: UserProfile = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> Appointment:
    return await _participating(appointment_id, current_user, service)
