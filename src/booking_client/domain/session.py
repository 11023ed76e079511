"""Authenticated session identity."""

from dataclasses import dataclass
from enum import StrEnum


class UserType(StrEnum):
    """Roles known to the marketplace backend."""

    CLIENT = "CLIENT"
    VENDOR = "VENDOR"
    SUPER_ADMIN = "SUPER_ADMIN"


@dataclass(frozen=True)
class SessionUser:
    """User the current session acts for."""

    user_id: str
    user_type: UserType
    email: str | None = None
    full_name: str | None = None
