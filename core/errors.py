"""
core/errors.py -- Domain error taxonomy shared by every service.

Services raise these; only api/errors.py knows about HTTP status codes.
Each error carries a stable machine-checkable `kind` and a human-readable
message. Nothing here is retried automatically -- a retry is always a repeat
of the user-facing operation (e.g. logging in again re-sends the
verification email).

Layer rule: core/ is the kernel. No imports from other project packages.
"""

from __future__ import annotations


class ShopfrontError(Exception):
    """Base class for all expected, user-visible failures."""

    kind: str = "error"
    default_message: str = "Request failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Conflict(ShopfrontError):
    """Duplicate registration, or an operation with nothing to act on."""

    kind = "conflict"
    default_message = "Resource already exists."


class InvalidCredential(ShopfrontError):
    """Bad login. Deliberately identical for unknown email and wrong password."""

    kind = "invalid_credential"
    default_message = "invalid email or password"


class NotFound(ShopfrontError):
    kind = "not_found"
    default_message = "Resource not found."


class InvalidToken(ShopfrontError):
    """Verification or reset token absent or mismatched."""

    kind = "invalid_token"
    default_message = "invalid link"


class Unauthenticated(ShopfrontError):
    """Missing, expired, or malformed bearer token."""

    kind = "unauthenticated"
    default_message = "access denied, no token provided"


class Forbidden(ShopfrontError):
    """Valid identity, but insufficient role or not the owner."""

    kind = "forbidden"
    default_message = "access denied, you are not allowed"


class TransientDependency(ShopfrontError):
    """A collaborator (mail transport) failed. Repeating the call may succeed."""

    kind = "transient_dependency"
    default_message = "A dependent service is unavailable, please try again."


class ValidationFailed(ShopfrontError):
    """Malformed input detected past the boundary schemas."""

    kind = "validation"
    default_message = "Invalid input."
