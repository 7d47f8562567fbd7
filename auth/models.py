"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors catalog/models.py
-- dataclasses own domain shape; stores and services do the work.

Layer rule: no imports from api/, catalog/, cache/, mail/, or uploads/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class UserType(str, Enum):
    ADMIN = "admin"
    NORMAL_USER = "normal_user"


@dataclass
class User:
    """A registered account.

    State machine: a user is Unverified until verify_email() consumes the
    verification token, then Verified forever. verification_token is only
    ever non-null while unverified; reset_password_token is only non-null
    between a reset request and its successful use.

    email is unique and compared exactly as stored (case-sensitive).
    """

    email: str
    username: str
    hashed_password: str
    user_type: UserType = UserType.NORMAL_USER
    id: int | None = None
    is_account_verified: bool = False
    verification_token: str | None = None
    reset_password_token: str | None = None
    profile_image: str | None = None  # filename under <uploads_dir>/users
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class TokenPayload:
    """Claims carried by a bearer token. The server holds no session state."""

    id: int
    user_type: UserType
