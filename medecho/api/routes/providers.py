"""Provider directory, availability and schedule editing."""

from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from medecho.api.dependencies import get_booking_service, get_current_user, get_session_context
from medecho.core.database import get_db
from medecho.core.repository import ProfileRepository, UserRepository
from medecho.core.schemas import UserProfile
from medecho.core.session import NotAuthenticatedError, PermissionDeniedError, SessionContext
from medecho.scheduling import (
    BookingService,
    ProviderAvailabilityProfile,
    ProviderNotFoundError,
    StaleProfileError,
)
from medecho.scheduling import store
from medecho.scheduling.booking import ProfileEdit
from medecho.scheduling.clock import parse_date

router = APIRouter(prefix="/providers")


# ---------------------------------------------------------------------------
# Request / response schemas
# ---------------------------------------------------------------------------

class AvailabilityResponse(BaseModel):
    provider_id: str
    date: str
    slots: list[str]


class DayActiveUpdate(BaseModel):
    is_active: bool


class RangeFieldUpdate(BaseModel):
    field: Literal["start", "end"]
    value: str


class BlockedSlotCreate(BaseModel):
    date: str
    reason: str
    is_all_day: bool = True
    start: Optional[str] = None
    end: Optional[str] = None

    @field_validator("date")
    @classmethod
    def _check_date(cls, v: str) -> str:
        v = v.strip()
        if parse_date(v) is None:
            raise ValueError(f"Invalid date (expected YYYY-MM-DD): {v!r}")
        return v


# ---------------------------------------------------------------------------
# Directory and availability
# ---------------------------------------------------------------------------

@router.get("", response_model=list[UserProfile])
async def list_providers(
    search: Optional[str] = Query(None, description="Match on name or specialization"),
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
) -> list[UserProfile]:
    doctors = await UserRepository(db).list_doctors(search=search)
    return [UserProfile.model_validate(d) for d in doctors]


@router.get("/{provider_id}/profile", response_model=ProviderAvailabilityProfile)
async def get_profile(
    provider_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
) -> ProviderAvailabilityProfile:
    profile = await ProfileRepository(db).get(provider_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Provider not found")
    return profile


@router.get("/{provider_id}/availability", response_model=AvailabilityResponse)
async def get_availability(
    provider_id: str,
    date: str = Query(..., description="YYYY-MM-DD"),
    service: BookingService = Depends(get_booking_service),
    current_user: UserProfile = Depends(get_current_user),
) -> AvailabilityResponse:
    if parse_date(date) is None:
        raise HTTPException(status_code=400, detail=f"Invalid date: {date}")
    slots = await service.available_slots(provider_id, date)
    return AvailabilityResponse(provider_id=provider_id, date=date, slots=slots)


# ---------------------------------------------------------------------------
# Schedule edits (provider only, on their own profile)
# ---------------------------------------------------------------------------

async def _apply(
    provider_id: str,
    edit: ProfileEdit,
    expected_version: Optional[int],
    session: SessionContext,
    service: BookingService,
) -> ProviderAvailabilityProfile:
    try:
        session.require_self(provider_id)
    except NotAuthenticatedError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))

    try:
        return await service.edit_profile(provider_id, edit, expected_version=expected_version)
    except ProviderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StaleProfileError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.put("/{provider_id}/days/{day_index}/active", response_model=ProviderAvailabilityProfile)
async def set_day_active(
    provider_id: str,
    day_index: int,
    body: DayActiveUpdate,
    expected_version: Optional[int] = Query(None),
    session: SessionContext = Depends(get_session_context),
    service: BookingService = Depends(get_booking_service),
) -> ProviderAvailabilityProfile:
    return await _apply(
        provider_id,
        lambda p: store.set_day_active(p, day_index, body.is_active),
        expected_version, session, service,
    )


@router.post("/{provider_id}/days/{day_index}/ranges", response_model=ProviderAvailabilityProfile)
async def add_range(
    provider_id: str,
    day_index: int,
    expected_version: Optional[int] = Query(None),
    session: SessionContext = Depends(get_session_context),
    service: BookingService = Depends(get_booking_service),
) -> ProviderAvailabilityProfile:
    return await _apply(
        provider_id,
        lambda p: store.add_range(p, day_index),
        expected_version, session, service,
    )


@router.delete(
    "/{provider_id}/days/{day_index}/ranges/{range_index}",
    response_model=ProviderAvailabilityProfile,
)
async def remove_range(
    provider_id: str,
    day_index: int,
    range_index: int,
    expected_version: Optional[int] = Query(None),
    session: SessionContext = Depends(get_session_context),
    service: BookingService = Depends(get_booking_service),
) -> ProviderAvailabilityProfile:
    return await _apply(
        provider_id,
        lambda p: store.remove_range(p, day_index, range_index),
        expected_version, session, service,
    )


@router.patch(
    "/{provider_id}/days/{day_index}/ranges/{range_index}",
    response_model=ProviderAvailabilityProfile,
)
async def update_range(
    provider_id: str,
    day_index: int,
    range_index: int,
    body: RangeFieldUpdate,
    expected_version: Optional[int] = Query(None),
    session: SessionContext = Depends(get_session_context),
    service: BookingService = Depends(get_booking_service),
) -> ProviderAvailabilityProfile:
    return await _apply(
        provider_id,
        lambda p: store.update_range_field(p, day_index, range_index, body.field, body.value),
        expected_version, session, service,
    )


@router.post(
    "/{provider_id}/days/{day_index}/copy-to-weekdays",
    response_model=ProviderAvailabilityProfile,
)
async def copy_to_weekdays(
    provider_id: str,
    day_index: int,
    expected_version: Optional[int] = Query(None),
    session: SessionContext = Depends(get_session_context),
    service: BookingService = Depends(get_booking_service),
) -> ProviderAvailabilityProfile:
    return await _apply(
        provider_id,
        lambda p: store.copy_ranges_to_weekdays(p, day_index),
        expected_version, session, service,
    )


@router.post("/{provider_id}/blocked-slots", response_model=ProviderAvailabilityProfile)
async def add_blocked_slot(
    provider_id: str,
    body: BlockedSlotCreate,
    expected_version: Optional[int] = Query(None),
    session: SessionContext = Depends(get_session_context),
    service: BookingService = Depends(get_booking_service),
) -> ProviderAvailabilityProfile:
    blocked = store.new_blocked_slot(
        body.date, body.reason, is_all_day=body.is_all_day, start=body.start, end=body.end
    )
    return await _apply(
        provider_id,
        lambda p: store.add_blocked_slot(p, blocked),
        expected_version, session, service,
    )


@router.delete(
    "/{provider_id}/blocked-slots/{blocked_id}",
    response_model=ProviderAvailabilityProfile,
)
async def remove_blocked_slot(
    provider_id: str,
    blocked_id: str,
    expected_version: Optional[int] = Query(None),
    session: SessionContext = Depends(get_session_context),
    service: BookingService = Depends(get_booking_service),
) -> ProviderAvailabilityProfile:
    return await _apply(
        provider_id,
        lambda p: store.remove_blocked_slot(p, blocked_id),
        expected_version, session, service,
    )
