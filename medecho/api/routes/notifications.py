"""Notification inbox and upcoming-appointment reminders."""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from medecho.api.dependencies import get_calendar, get_current_user
from medecho.config import get_settings
from medecho.core.database import get_db
from medecho.core.repository import AppointmentRepository, NotificationRepository
from medecho.core.schemas import UserProfile, UserRole
from medecho.scheduling import AppNotification
from medecho.scheduling.clock import CalendarPolicy
from medecho.scheduling.reminders import upcoming_reminders

router = APIRouter(prefix="/notifications")


@router.get("", response_model=list[AppNotification])
async def list_notifications(
    unread_only: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
) -> list[AppNotification]:
    return await NotificationRepository(db).list_for_user(current_user.id, unread_only=unread_only)


@router.get("/reminders", response_model=list[AppNotification])
async def list_reminders(
    hours: Optional[int] = Query(None, ge=1, le=24 * 14),
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
    calendar: CalendarPolicy = Depends(get_calendar),
) -> list[AppNotification]:
    """Reminders for pending appointments starting within the lead window."""
    repo = AppointmentRepository(db)
    if current_user.role == UserRole.DOCTOR:
        appointments = await repo.list(provider_id=current_user.id)
    else:
        appointments = await repo.list(subject_id=current_user.id)
    lead = timedelta(hours=hours or get_settings().reminder_lead_hours)
    return upcoming_reminders(appointments, current_user.id, calendar.now(), lead, calendar=calendar)


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
) -> dict:
    if not await NotificationRepository(db).mark_read(notification_id, current_user.id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"ok": True}
