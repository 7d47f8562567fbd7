"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication and roles.

Two guards:
  get_current_payload()  -- resolves "Authorization: Bearer <jwt>" to a
                            TokenPayload or raises Unauthenticated.
  require_roles(*roles)  -- the stricter guard: resolves the payload, then
                            raises Forbidden unless its role is in the
                            endpoint's allow-list.

Both decisions go through is_authorized(), a single policy predicate over
(resolved role, allowed roles). Endpoints declare their allow-list:

    @router.post("/products")
    def create(payload: TokenPayload = Depends(require_roles(UserType.ADMIN))): ...

Authorization is token-derived -- no server-side session. require_roles()
additionally confirms the account still exists, so a deleted user's
unexpired token stops working on role-gated routes.

Layer rule: no imports from api/, catalog/, cache/, mail/, or uploads/.
auth/dependencies.py may import from fastapi because it is part of the
FastAPI dependency injection system.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from fastapi import Request

from auth.models import TokenPayload, UserType
from auth.tokens import decode_access_token
from core.errors import Forbidden, Unauthenticated


def is_authorized(role: UserType, allowed_roles: Iterable[UserType]) -> bool:
    """Exact-match role check against an endpoint's allow-list."""
    return role in frozenset(allowed_roles)


def _bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthenticated("access denied, no token provided")
    return token.strip()


def get_current_payload(request: Request) -> TokenPayload:
    """Require a valid bearer token. Raises Unauthenticated otherwise."""
    return decode_access_token(_bearer_token(request))


def require_roles(*roles: UserType) -> Callable[[Request], TokenPayload]:
    """Build a dependency that admits only the given roles."""
    if not roles:
        raise ValueError("require_roles() needs at least one role")
    allowed = frozenset(roles)

    def dependency(request: Request) -> TokenPayload:
        payload = get_current_payload(request)
        if request.app.state.user_store.find_by_id(payload.id) is None:
            raise Unauthenticated("access denied, user no longer exists")
        if not is_authorized(payload.user_type, allowed):
            raise Forbidden()
        return payload

    return dependency
