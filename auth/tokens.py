"""
auth/tokens.py -- JWT, password hashing, and one-time token utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       the user id, user_type, issue time and expiry. Verification raises
       Unauthenticated on any failure -- the API layer turns that into a 401.

  Passwords: bcrypt with a fresh salt per hash. The _DUMMY_HASH constant
       enables timing equalization in AuthService.login() so response time
       does not reveal whether an email is registered.

  One-time tokens: secrets.token_hex(32) gives 256 bits of entropy, encoded
       as 64 hex characters. Used for email verification and password reset
       links. They are stored as-is because each is single-use and nulled on
       consumption.

  SECRET_KEY: sourced from core.config.get_settings(). Dev mode auto-generates
       a key, production refuses to start without one.

Layer rule: no imports from api/, catalog/, cache/, mail/, or uploads/.
Import from core/ is allowed.
"""

from __future__ import annotations

import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from auth.models import TokenPayload, UserType
from core.config import get_settings
from core.errors import Unauthenticated

logger = logging.getLogger("shopfront.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt only looks at the first 72 bytes. The API layer caps passwords
    well below that, so truncation never silently merges two passwords.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash in the DB -- treat as a mismatch, never as a match.
        return False


# Timing equalization dummy hash.
# Computed once at module load. Always run verify_password() even when the
# email does not exist so the response time is the same for both failures.
_DUMMY_HASH: str = hash_password("shopfront_timing_dummy")


def verify_against_dummy(plain: str) -> None:
    """Burn one bcrypt comparison for a login whose email was not found."""
    verify_password(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# One-time tokens (email verification, password reset)
# ---------------------------------------------------------------------------


def generate_one_time_token() -> str:
    """Return 32 random bytes as 64 hex characters."""
    return secrets.token_hex(32)


def tokens_match(expected: str | None, presented: str) -> bool:
    """Constant-time comparison of a stored one-time token against a presented one.

    A missing stored token never matches.
    """
    if expected is None:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), presented.encode("utf-8"))


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: int, user_type: UserType | str, expire_seconds: int = 0) -> str:
    """Encode a signed JWT with the user's identity and role.

    Args:
        user_id:        Numeric user ID stored in the DB.
        user_type:      Role claim ("admin" or "normal_user").
        expire_seconds: Token lifetime in seconds. If 0 (default), uses
                        Settings.token_expire_seconds.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "id": user_id,
        "user_type": UserType(user_type).value,
        "iat": now,
        "exp": now + timedelta(seconds=duration),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> TokenPayload:
    """Decode and verify a JWT.

    Fails closed: bad signature, expiry, a wrong algorithm, or claims that do
    not describe a known role all raise Unauthenticated.
    """
    try:
        claims = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError as exc:
        raise Unauthenticated("access denied, invalid token") from exc

    user_id = claims.get("id")
    # bool is an int subclass; a True id is not an identity
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise Unauthenticated("access denied, invalid token")
    try:
        user_type = UserType(claims.get("user_type"))
    except ValueError as exc:
        raise Unauthenticated("access denied, invalid token") from exc
    return TokenPayload(id=user_id, user_type=user_type)
