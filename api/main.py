"""
api/main.py -- FastAPI application entry point for Shopfront.

Run with:  uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan handles startup (stores, cache, mailer, services, purge task) and
shutdown (cancel purge task, close every store) symmetrically.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from api.errors import shopfront_error_handler
from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.products import router as products_router
from api.routes.reviews import router as reviews_router
from api.routes.uploads import router as uploads_router
from api.routes.users import router as users_router
from auth.service import AuthService
from auth.store import UserStore
from auth.users import UserService
from cache.store import CacheStore, NamespaceCache
from catalog.service import PRODUCTS_NAMESPACE, ProductService, ReviewService
from catalog.store import CatalogStore
from core.config import Settings, get_settings
from core.errors import ShopfrontError
from mail.mailer import Mailer, build_mailer
from uploads.storage import UploadStorage

VERSION = "0.1.0"

settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("shopfront.api")

# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------


async def _purge_loop(app: FastAPI) -> None:
    """Purge expired cache entries every 6 hours.

    Only TTL'd entries expire; with CACHE_TTL_SECONDS=0 this finds nothing.
    CancelledError from task.cancel() during shutdown propagates out of
    asyncio.sleep and unwinds the coroutine cleanly.
    """
    while True:
        await asyncio.sleep(6 * 60 * 60)
        purged = app.state.cache.purge_expired()
        if purged:
            logger.info("Purged %d expired cache entries", purged)


# ---------------------------------------------------------------------------
# Service wiring
# ---------------------------------------------------------------------------


def wire_services(
    app: FastAPI,
    *,
    user_store: UserStore,
    catalog: CatalogStore,
    cache: CacheStore,
    mailer: Mailer,
    uploads: UploadStorage,
    app_settings: Settings,
) -> None:
    """Attach stores and the services built on them to app.state.

    Route handlers only read app.state; the test suite calls this with
    in-memory stores and a mock mailer.
    """
    app.state.user_store = user_store
    app.state.catalog = catalog
    app.state.cache = cache
    app.state.uploads = uploads
    app.state.mailer = mailer

    user_service = UserService(user_store, uploads, catalog)
    product_service = ProductService(catalog, NamespaceCache(cache, PRODUCTS_NAMESPACE))
    app.state.auth_service = AuthService(user_store, mailer, app_settings)
    app.state.user_service = user_service
    app.state.product_service = product_service
    app.state.review_service = ReviewService(catalog, product_service, user_service)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Startup order matters:
      1. Stores first -- the services take them as constructor arguments.
      2. Services second.
      3. Purge task last -- references app.state.cache, so cache must exist.
    """
    # Startup
    logger.info("Shopfront API starting up")
    user_store = UserStore(db_url=settings.database_url)
    catalog = CatalogStore(db_url=settings.database_url)
    cache = CacheStore(settings.cache_db_path, default_ttl=settings.cache_ttl_seconds)
    logger.info("Stores initialized (%d users)", user_store.count())

    mailer = build_mailer(settings)
    wire_services(
        app,
        user_store=user_store,
        catalog=catalog,
        cache=cache,
        mailer=mailer,
        uploads=UploadStorage(settings.uploads_dir),
        app_settings=settings,
    )
    logger.info("Services initialized (mailer=%s)", type(mailer).__name__)
    app.state.purge_task = asyncio.create_task(_purge_loop(app))

    yield

    # Shutdown
    app.state.purge_task.cancel()
    app.state.cache.close()
    app.state.catalog.close()
    app.state.user_store.close()
    logger.info("Shopfront API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Shopfront API",
    description="Products, reviews, users and uploads for a small storefront.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Register in the order you want the request to encounter them:
# TrustedHost -> CORS -> SlowAPI.
# ---------------------------------------------------------------------------

app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter

# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(users_router, prefix="/api", tags=["Users"])
app.include_router(products_router, prefix="/api", tags=["Products"])
app.include_router(reviews_router, prefix="/api", tags=["Reviews"])
app.include_router(uploads_router, prefix="/api", tags=["Uploads"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------

app.add_exception_handler(ShopfrontError, shopfront_error_handler)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded.

    Retry-After tells clients how many seconds to wait before retrying.
    """
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(
        status_code=429,
        content=ErrorResponse(
            error=ErrorDetail(
                code="rate_limited",
                message="Too many requests.",
                detail=str(exc),
            )
        ).model_dump(),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or query params fail validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for FastAPI/Starlette HTTP exceptions (404 on unknown routes, 405, ...)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(exclude_none=True),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state. No rate limit applied.
# ---------------------------------------------------------------------------


@app.get("/api/health", include_in_schema=True, tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version and a per-component check."""
    components = {"app": "ok"}
    try:
        with request.app.state.user_store.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        components["database"] = "ok"
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")
        components["database"] = "error"
    return HealthResponse(version=VERSION, components=components)
