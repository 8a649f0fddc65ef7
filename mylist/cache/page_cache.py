"""PageCache — serialised pages keyed by (user, cursor signature, version)."""

from __future__ import annotations

import hashlib

import structlog

from mylist.cache.backend import CacheBackend
from mylist.cache.keys import page_key
from mylist.services.views import PageView

log = structlog.get_logger()


def cursor_signature(cursor: str | None, limit: int) -> str:
    """Deterministic key fragment for one query shape.

    The first page is ``head-l{limit}``; later pages hash the cursor token
    so arbitrary client input never lands in a key verbatim.
    """
    if cursor is None:
        return f"head-l{limit}"
    digest = hashlib.sha256(cursor.encode()).hexdigest()[:24]
    return f"{digest}-l{limit}"


class PageCache:
    def __init__(self, backend: CacheBackend, ttl_seconds: int = 300) -> None:
        self._backend = backend
        self._ttl = ttl_seconds

    async def get(self, user_id: str, signature: str, version: int) -> PageView | None:
        """Return the page cached under exactly *version*, or None on miss.

        Undecodable entries count as a miss; they are overwritten on rebuild.
        """
        key = page_key(user_id, signature, version)
        raw = await self._backend.get(key)
        if raw is None:
            log.debug("page cache miss", key=key)
            return None
        try:
            page = PageView.from_json(raw)
        except ValueError as exc:
            log.warning("discarding undecodable cached page", key=key, error=str(exc))
            return None
        log.debug("page cache hit", key=key)
        return page

    async def put(
        self,
        user_id: str,
        signature: str,
        version: int,
        page: PageView,
        ttl: int | None = None,
    ) -> None:
        key = page_key(user_id, signature, version)
        await self._backend.set(key, page.to_json(), ttl or self._ttl)
