"""MyListService — the cached read path.

    version = VersionStore.get(user)
    PageCache.get(user, signature, version)  -> hit: done
    miss: LockManager.try_acquire
        holder:  PageReader.fetch_page -> PageCache.put -> release
        busy:    poll PageCache with backoff, then uncached read

Any cache failure degrades to a direct store read.
"""

from __future__ import annotations

import asyncio

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from mylist.cache.backend import CacheUnavailableError
from mylist.cache.lock_manager import LockManager
from mylist.cache.page_cache import PageCache, cursor_signature
from mylist.cache.version_store import VersionStore
from mylist.dao.base import decode_cursor
from mylist.services.page_reader import PageReader
from mylist.services.views import PageView

log = structlog.get_logger()


class MyListService:
    def __init__(
        self,
        reader: PageReader,
        versions: VersionStore,
        pages: PageCache,
        locks: LockManager,
        *,
        lock_wait_ms: int = 1000,
        lock_poll_interval_ms: int = 25,
    ) -> None:
        self._reader = reader
        self._versions = versions
        self._pages = pages
        self._locks = locks
        self._lock_wait = lock_wait_ms / 1000
        self._poll_interval = max(lock_poll_interval_ms, 1) / 1000

    async def get_page(
        self,
        session: AsyncSession,
        user_id: str,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> PageView:
        """Return one page of *user_id*'s list.

        Raises ``InvalidCursorError`` / :class:`ValidationError` for bad input
        (checked before any cache traffic) and :class:`StoreUnavailableError`
        when a rebuild cannot reach the store.
        """
        limit = self._reader.normalize_limit(limit)
        if cursor is not None:
            decode_cursor(cursor)
        signature = cursor_signature(cursor, limit)

        try:
            version = await self._versions.get(user_id)
            cached = await self._pages.get(user_id, signature, version)
        except CacheUnavailableError:
            return await self._read_uncached(session, user_id, cursor, limit, "cache unavailable")
        if cached is not None:
            return cached
        return await self._rebuild(session, user_id, cursor, limit, signature, version)

    async def _rebuild(
        self,
        session: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        signature: str,
        version: int,
    ) -> PageView:
        try:
            token = await self._locks.try_acquire(user_id, signature)
        except CacheUnavailableError:
            return await self._read_uncached(session, user_id, cursor, limit, "lock unavailable")

        if token is None:
            page = await self._await_inflight(user_id, signature, version)
            if page is not None:
                return page
            return await self._read_uncached(session, user_id, cursor, limit, "lock wait exhausted")

        try:
            page = await self._reader.fetch_page(session, user_id, cursor, limit)
            try:
                await self._pages.put(user_id, signature, version, page)
            except CacheUnavailableError:
                log.warning("rebuilt page not cached", user_id=user_id, signature=signature)
            else:
                log.debug("page rebuilt", user_id=user_id, signature=signature, version=version)
            return page
        finally:
            try:
                await self._locks.release(user_id, signature, token)
            except CacheUnavailableError:
                log.warning("lock release failed, left to expire", user_id=user_id)

    async def _await_inflight(
        self, user_id: str, signature: str, version: int
    ) -> PageView | None:
        """Poll for the page another request is rebuilding.

        Backoff doubles from the poll interval; total wait is capped.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._lock_wait
        delay = self._poll_interval
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                return None
            await asyncio.sleep(min(delay, remaining))
            try:
                page = await self._pages.get(user_id, signature, version)
            except CacheUnavailableError:
                return None
            if page is not None:
                return page
            delay *= 2

    async def _read_uncached(
        self,
        session: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        reason: str,
    ) -> PageView:
        log.info("serving page from store without cache", user_id=user_id, reason=reason)
        return await self._reader.fetch_page(session, user_id, cursor, limit)
