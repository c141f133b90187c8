"""Explicit per-client session state."""

from __future__ import annotations

import logging
from typing import Optional

from medecho.core.schemas import UserProfile, UserRole

logger = logging.getLogger(__name__)


class NotAuthenticatedError(Exception):
    """No user is logged in on this session."""

    pass


class PermissionDeniedError(Exception):
    """The logged-in user lacks the role or ownership required."""

    pass


class SessionContext:
    """Holds the authenticated user for one client.

    Created per request by the API and per invocation by the CLI; nothing
    here is process-global.
    """

    def __init__(self, user: Optional[UserProfile] = None):
        self._user = user

    @property
    def user(self) -> Optional[UserProfile]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def login(self, user: UserProfile) -> None:
        self._user = user
        logger.debug(f"Session opened for {user.id} ({user.role.value})")

    def logout(self) -> None:
        if self._user is not None:
            logger.debug(f"Session closed for {self._user.id}")
        self._user = None

    def require_user(self) -> UserProfile:
        if self._user is None:
            raise NotAuthenticatedError("Not authenticated")
        return self._user

    def require_role(self, role: UserRole) -> UserProfile:
        user = self.require_user()
        if user.role != role:
            raise PermissionDeniedError(f"{role.value.title()} access required")
        return user

    def require_self(self, user_id: str) -> UserProfile:
        """The logged-in user, provided they are *user_id*."""
        user = self.require_user()
        if user.id != user_id:
            raise PermissionDeniedError("You may only change your own records")
        return user
