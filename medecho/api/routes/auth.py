"""Auth routes: register, login, logout, me."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from medecho.api.dependencies import get_current_user
from medecho.core.auth import (
    clear_auth_cookie,
    create_access_token,
    hash_password,
    set_auth_cookie,
    verify_password,
)
from medecho.core.database import get_db
from medecho.core.repository import UserRepository
from medecho.core.schemas import UserProfile, UserRole

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth")

DEFAULT_SPECIALIZATION = "General Practitioner"
MIN_PASSWORD_LENGTH = 8


# --- Request / Response schemas ---

class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    role: UserRole = UserRole.PATIENT
    specialization: Optional[str] = None
    contact: Optional[str] = None
    preferred_language: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str
    role: Optional[UserRole] = None  # portal the user is signing in through


class AuthResponse(BaseModel):
    user: UserProfile
    access_token: str
    token_type: str = "bearer"


def _issue(response: Response, user: UserProfile) -> AuthResponse:
    token = create_access_token(user.id, user.role.value)
    set_auth_cookie(response, token)
    return AuthResponse(user=user, access_token=token)


# --- Endpoints ---

@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    if body.role == UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Admin accounts cannot self-register")
    if len(body.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )

    users = UserRepository(db)
    if await users.get_by_email(body.email):
        raise HTTPException(status_code=409, detail="User already exists")

    specialization = body.specialization
    if body.role == UserRole.DOCTOR and not specialization:
        specialization = DEFAULT_SPECIALIZATION

    user = await users.create(
        name=body.name,
        email=body.email,
        role=body.role.value,
        password_hash=hash_password(body.password),
        specialization=specialization,
        contact=body.contact,
        preferred_language=body.preferred_language,
    )
    logger.info(f"Registered {user.role} {user.id}")
    return _issue(response, UserProfile.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    user = await UserRepository(db).get_by_email(body.email)
    if not user or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    profile = UserProfile.model_validate(user)
    if body.role is not None and profile.role != body.role:
        raise HTTPException(
            status_code=403,
            detail=f"Account role mismatch. Use the {profile.role.value.title()} portal.",
        )
    return _issue(response, profile)


@router.post("/logout")
async def logout(response: Response) -> dict:
    clear_auth_cookie(response)
    return {"ok": True}


@router.get("/me", response_model=UserProfile)
async def me(current_user: UserProfile = Depends(get_current_user)) -> UserProfile:
    return current_user
