"""Shared fixtures for mylist tests.

The coherence protocol is exercised against an in-memory ``CacheBackend``
and an in-memory list store, so these tests need neither Redis nor
PostgreSQL. DAO tests against a real database live in
``test_my_list_dao.py``.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from mylist.cache.backend import CacheUnavailableError
from mylist.cache.lock_manager import LockManager
from mylist.cache.page_cache import PageCache
from mylist.cache.version_store import VersionStore
from mylist.dao.base import Cursor, Page, encode_cursor
from mylist.dao.content_dao import ContentDAO
from mylist.dao.my_list_dao import MyListDAO
from mylist.models.my_list_item import MyListItem
from mylist.services.mutation_coordinator import MutationCoordinator
from mylist.services.my_list_service import MyListService
from mylist.services.page_reader import PageReader

NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class InMemoryBackend:
    """Dict-backed ``CacheBackend``. Set ``down = True`` to simulate an outage."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.down = False

    def _check(self) -> None:
        if self.down:
            raise CacheUnavailableError("backend down")

    async def get(self, key: str) -> str | None:
        self._check()
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        self._check()
        self.data[key] = value
        self.ttls[key] = ttl

    async def set_if_absent(self, key: str, value: str, ttl: int | None = None) -> bool:
        self._check()
        if key in self.data:
            return False
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, key: str) -> None:
        self._check()
        self.data.pop(key, None)
        self.ttls.pop(key, None)

    async def delete_if_equals(self, key: str, value: str) -> bool:
        self._check()
        if self.data.get(key) != value:
            return False
        await self.delete(key)
        return True

    async def incr(self, key: str) -> int:
        self._check()
        value = int(self.data.get(key, "0")) + 1
        self.data[key] = str(value)
        return value

    async def expire(self, key: str, ttl: int) -> None:
        self._check()
        if key in self.data:
            self.ttls[key] = ttl

    def expire_now(self, key: str) -> None:
        """Drop *key* as if its TTL had elapsed."""
        self.data.pop(key, None)
        self.ttls.pop(key, None)


class InMemoryListDAO(MyListDAO):
    """MyListDAO over a Python list, with the same ordering rules.

    ``query_delay`` slows every page query so concurrent readers overlap.
    """

    def __init__(self) -> None:
        self.rows: list[MyListItem] = []
        self.query_count = 0
        self.query_delay = 0.0
        self._clock = NOW

    def seed(self, user_id: str, content_id: str, content_type: str = "movie") -> MyListItem:
        self._clock += timedelta(seconds=1)
        row = MyListItem(
            id=uuid.uuid4(),
            user_id=user_id,
            content_id=content_id,
            content_type=content_type,
            created_at=self._clock,
            updated_at=self._clock,
        )
        self.rows.append(row)
        return row

    async def query_page(
        self, session, user_id: str, cursor: Cursor | None, limit: int
    ) -> Page[MyListItem]:
        self.query_count += 1
        if self.query_delay:
            await asyncio.sleep(self.query_delay)
        rows = sorted(
            (r for r in self.rows if r.user_id == user_id),
            key=lambda r: (r.created_at, r.id),
            reverse=True,
        )
        if cursor is not None:
            rows = [r for r in rows if (r.created_at, r.id) < (cursor.created_at, cursor.id)]
        rows = rows[: limit + 1]
        has_more = len(rows) > limit
        data = rows[:limit]
        next_cursor = None
        if has_more and data:
            next_cursor = encode_cursor(data[-1].created_at, data[-1].id)
        return Page(data=data, next_cursor=next_cursor, has_more=has_more)

    async def get_item(self, session, user_id: str, content_id: str) -> MyListItem | None:
        for row in self.rows:
            if row.user_id == user_id and row.content_id == content_id:
                return row
        return None

    async def insert_if_absent(
        self, session, *, user_id: str, content_id: str, content_type: str
    ) -> tuple[MyListItem, bool]:
        existing = await self.get_item(session, user_id, content_id)
        if existing is not None:
            return existing, False
        return self.seed(user_id, content_id, content_type), True

    async def delete_if_exists(self, session, user_id: str, content_id: str) -> bool:
        existing = await self.get_item(session, user_id, content_id)
        if existing is None:
            return False
        self.rows.remove(existing)
        return True


class KnownContentDAO(ContentDAO):
    def __init__(self, known: set[tuple[str, str]]) -> None:
        self.known = known

    async def content_exists(self, session, content_id: str, content_type: str) -> bool:
        return (content_id, content_type) in self.known


@pytest.fixture
def session():
    return AsyncMock()


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def store():
    return InMemoryListDAO()


@pytest.fixture
def content_dao():
    known = {(f"m{i}", "movie") for i in range(1, 50)} | {("t1", "tvshow"), ("t2", "tvshow")}
    return KnownContentDAO(known)


@pytest.fixture
def versions(backend):
    return VersionStore(backend)


@pytest.fixture
def locks(backend):
    return LockManager(backend, ttl_seconds=5)


@pytest.fixture
def pages(backend):
    return PageCache(backend, ttl_seconds=300)


@pytest.fixture
def reader(store):
    return PageReader(store, page_size_default=20, page_size_max=100, timeout=1.0)


@pytest.fixture
def service(reader, versions, pages, locks):
    return MyListService(
        reader, versions, pages, locks, lock_wait_ms=500, lock_poll_interval_ms=5
    )


@pytest.fixture
def coordinator(store, content_dao, versions, pages):
    return MutationCoordinator(
        store, content_dao, versions, pages, optimistic_limits=(2, 20), timeout=1.0
    )
