"""FastAPI dependencies: session resolution and service wiring."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from medecho.assistant import SymptomIntakeAssistant
from medecho.config import get_settings
from medecho.core.auth import ACCESS_COOKIE, decode_token
from medecho.core.database import get_db
from medecho.core.repository import NotificationRepository, SqlSchedulingBackend, UserRepository
from medecho.core.schemas import UserProfile, UserRole
from medecho.core.session import NotAuthenticatedError, PermissionDeniedError, SessionContext
from medecho.scheduling import AppNotification, BookingService, ProviderLocks
from medecho.scheduling.clock import CalendarPolicy, calendar_from_settings


def _token_from_request(request: Request) -> Optional[str]:
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]
    return None


async def get_session_context(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> SessionContext:
    """Session for this request: access cookie first, then a bearer token.

    An absent or invalid token yields an anonymous session; routes decide
    whether that is acceptable.
    """
    session = SessionContext()
    token = _token_from_request(request)
    if not token:
        return session

    claims = decode_token(token)
    if not claims or claims.get("type") != "access" or not claims.get("sub"):
        return session

    user = await UserRepository(db).get_by_id(claims["sub"])
    if user is not None:
        session.login(UserProfile.model_validate(user))
    return session


async def get_current_user(
    session: SessionContext = Depends(get_session_context),
) -> UserProfile:
    try:
        return session.require_user()
    except NotAuthenticatedError as e:
        raise HTTPException(status_code=401, detail=str(e))


def require_role(session: SessionContext, role: UserRole) -> UserProfile:
    try:
        return session.require_role(role)
    except NotAuthenticatedError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))


def get_calendar() -> CalendarPolicy:
    return calendar_from_settings()


def get_provider_locks(request: Request) -> ProviderLocks:
    locks = getattr(request.app.state, "provider_locks", None)
    if locks is None:
        locks = request.app.state.provider_locks = ProviderLocks()
    return locks


async def get_booking_service(
    db: AsyncSession = Depends(get_db),
    calendar: CalendarPolicy = Depends(get_calendar),
    locks: ProviderLocks = Depends(get_provider_locks),
) -> BookingService:
    notifications = NotificationRepository(db)

    async def notify(notification: AppNotification) -> None:
        await notifications.create(notification)

    return BookingService(
        SqlSchedulingBackend(db),
        calendar=calendar,
        step_minutes=get_settings().slot_step_minutes,
        notify=notify,
        locks=locks,
    )


def get_assistant(request: Request) -> SymptomIntakeAssistant:
    router = getattr(request.app.state, "llm_router", None)
    if router is None:
        raise HTTPException(status_code=503, detail="AI assistant is not configured")
    return SymptomIntakeAssistant(router)
