"""
api/limiter.py -- Shared slowapi rate limiter instance.

Import this in api/main.py (to mount as middleware) and in the route modules
that apply per-route limits with @limiter.limit() (login, forgot-password,
uploads).

Using a single shared instance ensures all routes share the same in-memory
counter store. If this were instantiated in each module separately, each
module would get its own isolated counter and rate limits would never trigger.

Route modules put @limiter.limit directly below @router.<method> so the
router registers the counting wrapper. The middleware skips decorated routes,
so a limit above the router decorator is never counted.

RATE_LIMIT_ENABLED=false turns every limit off (local load tests, test suite).
Counters are per process; behind several workers each one counts separately.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    enabled=get_settings().rate_limit_enabled,
)
