"""Generic base DAO — lookups (ORM) + keyset pagination (Core).

Also home of the cursor codec: an opaque, signed, URL-safe token that
encodes the ``(created_at, id)`` position of the last row on a page.
"""

import base64
import hashlib
import hmac
import json
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, select, tuple_
from sqlalchemy.ext.asyncio import AsyncSession

from mylist.core.config import get_settings
from mylist.core.database import Base

ModelT = TypeVar("ModelT", bound=Base)

# Upper bound on accepted token length; real cursors are ~150 chars.
_CURSOR_MAX_LEN = 1024


class InvalidCursorError(ValueError):
    """Raised when a cursor string cannot be decoded or has invalid signature."""


@dataclass(frozen=True)
class Cursor:
    """Decoded cursor: (created_at, id)."""

    created_at: datetime
    id: uuid.UUID


@dataclass
class Page(Generic[ModelT]):
    """One page of rows plus the token for the next one."""

    data: list[ModelT]
    next_cursor: str | None
    has_more: bool


def _sign(payload: str) -> str:
    """Return a truncated HMAC-SHA256 hex digest for *payload*."""
    secret = get_settings().cursor_secret.encode()
    return hmac.new(secret, payload.encode(), hashlib.sha256).hexdigest()[:16]


def encode_cursor(created_at: datetime, row_id: uuid.UUID) -> str:
    """Encode (created_at, id) into a signed, URL-safe base64 string."""
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    payload = json.dumps({"c": created_at.isoformat(), "i": str(row_id)})
    sig = _sign(payload)
    return base64.urlsafe_b64encode(f"{payload}|{sig}".encode()).decode()


def decode_cursor(cursor: str) -> Cursor:
    """Decode a signed base64 cursor string back to (created_at, id).

    Raises ``InvalidCursorError`` for malformed or tampered cursors.
    """
    if not cursor or len(cursor) > _CURSOR_MAX_LEN:
        raise InvalidCursorError(f"invalid cursor: {cursor[:64]!r}")
    try:
        raw = base64.urlsafe_b64decode(cursor.encode()).decode()
        payload, sig = raw.rsplit("|", 1)
        expected = _sign(payload)
        if not hmac.compare_digest(sig, expected):
            raise InvalidCursorError(f"cursor signature mismatch: {cursor!r}")
        data = json.loads(payload)
        if not isinstance(data["c"], str) or not isinstance(data["i"], str):
            raise InvalidCursorError(f"invalid cursor: {cursor!r}")
        created_at = datetime.fromisoformat(data["c"])
        if created_at.tzinfo is None:
            raise InvalidCursorError(f"invalid cursor: {cursor!r}")
        return Cursor(created_at=created_at, id=uuid.UUID(data["i"]))
    except InvalidCursorError:
        raise
    except (json.JSONDecodeError, KeyError, TypeError, ValueError, UnicodeDecodeError) as exc:
        raise InvalidCursorError(f"invalid cursor: {cursor!r}") from exc


class BaseDAO(Generic[ModelT]):
    """Base data-access object. Subclasses set ``model`` class attribute."""

    model: type[ModelT]

    # ── ORM methods ──────────────────────────────────────────────────────

    async def get_by_field(self, session: AsyncSession, **filters: Any) -> ModelT | None:
        """Return the first row matching all *filters*, or None.

        Raises ``ValueError`` if called without any filters.
        """
        if not filters:
            raise ValueError("get_by_field() requires at least one filter")
        stmt = self._filtered(**filters)
        result = await session.execute(stmt)
        return result.scalars().first()

    def _filtered(self, **filters: Any) -> Select:
        stmt = select(self.model)
        for key, val in filters.items():
            stmt = stmt.where(getattr(self.model, key) == val)
        return stmt

    # ── Core methods ─────────────────────────────────────────────────────

    async def paginate(
        self,
        session: AsyncSession,
        query: Select,
        cursor: Cursor | None,
        limit: int,
    ) -> Page[ModelT]:
        """Apply keyset pagination to *query*.

        The query must select from a table that has ``created_at`` and ``id``
        columns. Ordering (created_at DESC, id DESC) and LIMIT are appended
        here — callers should NOT add their own ORDER BY / LIMIT. One extra
        row is fetched to decide ``has_more`` without a second query.
        """
        if limit < 1:
            raise ValueError("limit must be positive")
        table = self.model.__table__

        if cursor is not None:
            query = query.where(
                tuple_(table.c.created_at, table.c.id) < (cursor.created_at, cursor.id)
            )

        query = query.order_by(
            table.c.created_at.desc(),
            table.c.id.desc(),
        ).limit(limit + 1)

        result = await session.execute(query)
        rows = list(result.scalars().all())

        has_more = len(rows) > limit
        data = rows[:limit]

        next_cursor = None
        if has_more and data:
            last = data[-1]
            next_cursor = encode_cursor(last.created_at, last.id)

        return Page(data=data, next_cursor=next_cursor, has_more=has_more)
