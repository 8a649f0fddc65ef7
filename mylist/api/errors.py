"""Unified error handling — every failure becomes ``{"detail", "code"}`` JSON.

Client-fixable problems map to 4xx; transient backend problems map to 503
so callers know a retry may succeed.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mylist.cache.backend import CacheUnavailableError
from mylist.dao.base import InvalidCursorError
from mylist.services import (
    InvalidContentError,
    ServiceError,
    StoreUnavailableError,
    ValidationError,
)

# Most specific first; the first isinstance match wins.
_SERVICE_ERRORS: list[tuple[type[ServiceError], int, str]] = [
    (InvalidContentError, 422, "invalid_content"),
    (ValidationError, 422, "validation_error"),
    (StoreUnavailableError, 503, "store_unavailable"),
]


def _error(status: int, code: str, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"detail": detail, "code": code})


async def _service_error_handler(_request: Request, exc: ServiceError) -> JSONResponse:
    for cls, status, code in _SERVICE_ERRORS:
        if isinstance(exc, cls):
            return _error(status, code, str(exc))
    return _error(500, "service_error", str(exc))


async def _validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = []
    for err in exc.errors():
        loc = " → ".join(str(part) for part in err["loc"])
        messages.append(f"{loc}: {err['msg']}")
    return _error(422, "validation_error", "; ".join(messages))


async def _invalid_cursor_handler(_request: Request, exc: InvalidCursorError) -> JSONResponse:
    return _error(400, "invalid_cursor", str(exc))


async def _cache_unavailable_handler(
    _request: Request, exc: CacheUnavailableError
) -> JSONResponse:
    return _error(503, "cache_unavailable", str(exc))


def register_error_handlers(app: FastAPI) -> None:
    """Register exception handlers on the app."""
    app.add_exception_handler(ServiceError, _service_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(InvalidCursorError, _invalid_cursor_handler)  # type: ignore[arg-type]
    app.add_exception_handler(CacheUnavailableError, _cache_unavailable_handler)  # type: ignore[arg-type]
