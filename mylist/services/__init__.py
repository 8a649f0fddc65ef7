"""Service layer — business logic orchestration."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError

T = TypeVar("T")


class ServiceError(Exception):
    """Base service exception."""


class ValidationError(ServiceError):
    """Missing or invalid request input (-> HTTP 422)."""


class InvalidContentError(ValidationError):
    """Unknown content type or content that does not exist (-> HTTP 422)."""


class StoreUnavailableError(ServiceError):
    """Durable store failed or timed out; safe to retry (-> HTTP 503)."""


async def store_call(awaitable: Awaitable[T], *, timeout: float, operation: str) -> T:
    """Await a store operation with a deadline.

    Driver errors and timeouts become :class:`StoreUnavailableError`.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError as exc:
        raise StoreUnavailableError(f"{operation} timed out after {timeout}s") from exc
    except (SQLAlchemyError, OSError) as exc:
        raise StoreUnavailableError(f"{operation} failed: {exc}") from exc
