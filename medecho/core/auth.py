"""Credentials for MedEcho users: pbkdf2 password hashes and signed session tokens."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from fastapi import Response
from jose import JWTError, jwt
from passlib.context import CryptContext

from medecho.config import get_settings

logger = logging.getLogger(__name__)

# pbkdf2 is pure python in passlib, so no native bcrypt wheel is needed
passwords = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

ACCESS_COOKIE = "medecho_access"
TOKEN_KIND = "access"


def hash_password(plain: str) -> str:
    return passwords.hash(plain)


def verify_password(plain: str, hashed: str | None) -> bool:
    """False for accounts created without a password as well as for a wrong one."""
    if not hashed:
        return False
    try:
        return passwords.verify(plain, hashed)
    except ValueError:
        logger.warning("Stored password hash is not in a recognised format")
        return False


def create_access_token(user_id: str, role: str) -> str:
    settings = get_settings()
    issued = datetime.now(timezone.utc)
    claims = {
        "sub": user_id,
        "role": role,
        "type": TOKEN_KIND,
        "iat": issued,
        "exp": issued + timedelta(minutes=settings.access_token_expire_minutes),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict | None:
    """Claims of a valid, unexpired access token; None for anything else."""
    settings = get_settings()
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.debug("Rejected token: %s", e)
        return None
    if claims.get("type") != TOKEN_KIND:
        return None
    return claims


def set_auth_cookie(response: Response, access: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=ACCESS_COOKIE,
        value=access,
        max_age=settings.access_token_expire_minutes * 60,
        path="/",
        secure=settings.cookie_secure,
        httponly=True,
        samesite="lax",
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(key=ACCESS_COOKIE, path="/")
