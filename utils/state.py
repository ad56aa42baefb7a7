# utils/state.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

logger = logging.getLogger(__name__)


class UserRole(str, Enum):
    """Roles offered on the login screen."""

    PATIENT = "PATIENT"
    CLINICIAN = "CLINICIAN"
    DOCTOR = "DOCTOR"
    STAFF = "STAFF"

    @classmethod
    def normalize(cls, value: Union[str, "UserRole"]) -> "UserRole":
        if isinstance(value, cls):
            return value
        if not value or not str(value).strip():
            raise ValueError("User role is required")
        try:
            return cls(str(value).strip().upper())
        except ValueError as exc:
            raise ValueError(f"Unsupported user role: {value}") from exc

    @classmethod
    def choices(cls) -> tuple["UserRole", ...]:
        return tuple(cls)


@dataclass
class SessionContext:
    """The signed-in desk user, passed explicitly to UI handlers.

    Repositories never consult the session; it only tells the UI layer who is
    acting and what they may open.
    """

    user_id: Optional[str] = None
    role: Optional[UserRole] = None

    def login(self, user_id: str, role: Union[str, UserRole]) -> "SessionContext":
        user_id = (user_id or "").strip()
        if not user_id:
            raise ValueError("User ID is required")
        self.role = UserRole.normalize(role)
        self.user_id = user_id
        logger.debug("[session] login %s (%s)", self.user_id, self.role.value)
        return self

    def logout(self) -> None:
        logger.debug("[session] logout %s", self.user_id)
        self.user_id = None
        self.role = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None and self.role is not None

    def has_role(self, *roles: Union[str, UserRole]) -> bool:
        if self.role is None:
            return False
        return self.role in {UserRole.normalize(r) for r in roles}


__all__ = ["UserRole", "SessionContext"]
