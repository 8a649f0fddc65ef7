"""Tests for MyListService — the cached read path."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from mylist.cache.backend import CacheUnavailableError
from mylist.cache.page_cache import cursor_signature
from mylist.dao.base import InvalidCursorError
from mylist.services import StoreUnavailableError, ValidationError
from mylist.services.my_list_service import MyListService


async def _walk(service, session, user_id, limit):
    """Follow next_cursor from the first page until has_more is False."""
    seen, cursor = [], None
    while True:
        page = await service.get_page(session, user_id, cursor=cursor, limit=limit)
        seen.extend(page.items)
        if not page.has_more:
            assert page.next_cursor is None
            return seen
        cursor = page.next_cursor


class TestReadPath:
    async def test_miss_then_hit(self, service, store, session, backend):
        store.seed("u1", "m1")
        first = await service.get_page(session, "u1", limit=10)
        second = await service.get_page(session, "u1", limit=10)
        assert first == second
        assert store.query_count == 1
        assert "mylist:u1:page:head-l10:v1" in backend.data

    async def test_lock_released_after_rebuild(self, service, store, session, backend):
        store.seed("u1", "m1")
        await service.get_page(session, "u1", limit=10)
        assert not [k for k in backend.data if k.startswith("mylist:lock:")]

    async def test_concrete_scenario(self, service, store, session):
        t1 = store.seed("u1", "m1")
        t2 = store.seed("u1", "m2")
        t3 = store.seed("u1", "m3")

        first = await service.get_page(session, "u1", limit=2)
        assert [i.id for i in first.items] == [t3.id, t2.id]
        assert first.has_more is True

        second = await service.get_page(session, "u1", cursor=first.next_cursor, limit=2)
        assert [i.id for i in second.items] == [t1.id]
        assert second.has_more is False
        assert second.next_cursor is None

    @pytest.mark.parametrize("limit", [1, 3, 7, 25])
    async def test_walk_visits_every_item_once_in_order(self, service, store, session, limit):
        for n in range(1, 24):
            store.seed("u1", f"m{n}")
        seen = await _walk(service, session, "u1", limit)
        assert [i.content_id for i in seen] == [f"m{n}" for n in range(23, 0, -1)]
        created = [i.created_at for i in seen]
        assert created == sorted(created, reverse=True)

    async def test_empty_list(self, service, session):
        page = await service.get_page(session, "ghost", limit=5)
        assert page.items == []
        assert page.has_more is False

    async def test_version_bump_makes_old_pages_unreachable(
        self, service, store, session, versions
    ):
        store.seed("u1", "m1")
        await service.get_page(session, "u1", limit=10)
        store.seed("u1", "m2")
        await versions.bump("u1")

        page = await service.get_page(session, "u1", limit=10)
        assert [i.content_id for i in page.items] == ["m2", "m1"]
        assert store.query_count == 2


class TestInputValidation:
    async def test_invalid_cursor_rejected_before_cache(self, service, session, backend):
        with pytest.raises(InvalidCursorError):
            await service.get_page(session, "u1", cursor="not-a-cursor", limit=10)
        assert backend.data == {}

    async def test_non_positive_limit(self, service, session):
        with pytest.raises(ValidationError):
            await service.get_page(session, "u1", limit=0)

    async def test_limit_clamped_in_key(self, service, store, session, backend):
        store.seed("u1", "m1")
        await service.get_page(session, "u1", limit=10_000)
        assert f"mylist:u1:page:{cursor_signature(None, 100)}:v1" in backend.data


class TestStampedeProtection:
    async def test_concurrent_cold_reads_query_store_once(self, service, store, session):
        for n in range(1, 6):
            store.seed("u1", f"m{n}")
        store.query_delay = 0.05

        results = await asyncio.gather(
            *(service.get_page(session, "u1", limit=3) for _ in range(10))
        )

        assert store.query_count == 1
        assert all(page == results[0] for page in results)
        assert [i.content_id for i in results[0].items] == ["m5", "m4", "m3"]

    async def test_busy_lock_falls_back_to_direct_read(
        self, reader, versions, pages, locks, store, session, backend
    ):
        service = MyListService(
            reader, versions, pages, locks, lock_wait_ms=30, lock_poll_interval_ms=5
        )
        store.seed("u1", "m1")
        # Another instance holds the lock and never publishes a page.
        held = await locks.try_acquire("u1", cursor_signature(None, 10))
        assert held

        page = await service.get_page(session, "u1", limit=10)

        assert [i.content_id for i in page.items] == ["m1"]
        assert store.query_count == 1
        # The fallback read is not cached and the other holder's lock is untouched.
        assert "mylist:u1:page:head-l10:v1" not in backend.data
        assert backend.data["mylist:lock:u1:head-l10"] == held


class TestDegradation:
    async def test_cache_down_serves_from_store(self, service, store, session, backend):
        store.seed("u1", "m1")
        backend.down = True
        page = await service.get_page(session, "u1", limit=10)
        assert [i.content_id for i in page.items] == ["m1"]

    async def test_cache_put_failure_still_returns_page(
        self, service, store, session, backend, pages
    ):
        store.seed("u1", "m1")
        pages.put = AsyncMock(side_effect=CacheUnavailableError("down"))
        page = await service.get_page(session, "u1", limit=10)
        assert [i.content_id for i in page.items] == ["m1"]
        assert not [k for k in backend.data if k.startswith("mylist:lock:")]

    async def test_store_failure_writes_no_page_and_releases_lock(
        self, service, store, session, backend
    ):
        store.query_page = AsyncMock(side_effect=StoreUnavailableError("down"))
        with pytest.raises(StoreUnavailableError):
            await service.get_page(session, "u1", limit=10)
        assert not [k for k in backend.data if ":page:" in k or k.startswith("mylist:lock:")]
