"""
api/errors.py -- Translate domain errors into HTTP responses.

Services raise core.errors types and know nothing about status codes. This
table is the single place that decides them. The response body uses the same
ErrorResponse envelope as every other error, with code = the error kind.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from api.models import ErrorDetail, ErrorResponse
from core.errors import (
    Conflict,
    Forbidden,
    InvalidCredential,
    InvalidToken,
    NotFound,
    ShopfrontError,
    TransientDependency,
    Unauthenticated,
    ValidationFailed,
)

STATUS_BY_ERROR: dict[type[ShopfrontError], int] = {
    NotFound: 404,
    Unauthenticated: 401,
    Forbidden: 403,
    Conflict: 400,
    InvalidCredential: 400,
    InvalidToken: 400,
    ValidationFailed: 400,
    TransientDependency: 503,
}


def status_for(exc: ShopfrontError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return 400


async def shopfront_error_handler(request: Request, exc: ShopfrontError) -> JSONResponse:
    response = JSONResponse(
        status_code=status_for(exc),
        content=ErrorResponse(error=ErrorDetail(code=exc.kind, message=exc.message)).model_dump(exclude_none=True),
    )
    if isinstance(exc, Unauthenticated):
        response.headers["WWW-Authenticate"] = "Bearer"
    return response
