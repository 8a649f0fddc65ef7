"""Tests for RedisBackend — command mapping and error translation.

The redis client is replaced with an AsyncMock; no server is needed.
"""

from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from mylist.cache.backend import CacheUnavailableError, RedisBackend


@pytest.fixture
def client():
    return AsyncMock()


@pytest.fixture
def backend(client):
    b = RedisBackend("redis://localhost:6379/0", timeout=0.25)
    b._client = client
    return b


class TestCommands:
    async def test_get(self, backend, client):
        client.get = AsyncMock(return_value="3")
        assert await backend.get("k") == "3"
        client.get.assert_awaited_once_with("k")

    async def test_set_with_ttl(self, backend, client):
        await backend.set("k", "v", 30)
        client.set.assert_awaited_once_with("k", "v", ex=30)

    async def test_set_if_absent_uses_nx_ex(self, backend, client):
        client.set = AsyncMock(return_value=True)
        assert await backend.set_if_absent("lock", "tok", 5) is True
        client.set.assert_awaited_once_with("lock", "tok", nx=True, ex=5)

    async def test_set_if_absent_existing_key(self, backend, client):
        client.set = AsyncMock(return_value=None)
        assert await backend.set_if_absent("lock", "tok", 5) is False

    async def test_incr(self, backend, client):
        client.incr = AsyncMock(return_value=4)
        assert await backend.incr("v") == 4

    async def test_delete_if_equals_is_single_script(self, backend, client):
        client.eval = AsyncMock(return_value=1)
        assert await backend.delete_if_equals("lock", "tok") is True
        script, numkeys, key, value = client.eval.await_args.args
        assert "redis.call('GET', KEYS[1]) == ARGV[1]" in script
        assert (numkeys, key, value) == (1, "lock", "tok")

    async def test_delete_if_equals_mismatch(self, backend, client):
        client.eval = AsyncMock(return_value=0)
        assert await backend.delete_if_equals("lock", "other") is False

    async def test_expire(self, backend, client):
        await backend.expire("k", 60)
        client.expire.assert_awaited_once_with("k", 60)


class TestFailures:
    async def test_connection_error_translated(self, backend, client):
        client.get = AsyncMock(side_effect=RedisConnectionError("refused"))
        with pytest.raises(CacheUnavailableError, match="refused"):
            await backend.get("k")

    async def test_timeout_translated(self, backend, client):
        client.incr = AsyncMock(side_effect=RedisTimeoutError("timed out"))
        with pytest.raises(CacheUnavailableError):
            await backend.incr("k")

    async def test_not_started(self):
        backend = RedisBackend("redis://localhost:6379/0")
        with pytest.raises(CacheUnavailableError, match="not started"):
            await backend.get("k")

    async def test_ping_false_when_down(self, backend, client):
        client.ping = AsyncMock(side_effect=RedisConnectionError("down"))
        assert await backend.ping() is False

    async def test_ping_false_when_not_started(self):
        assert await RedisBackend("redis://localhost:6379/0").ping() is False


class TestLifecycle:
    async def test_start_tolerates_unreachable_server(self):
        client = AsyncMock()
        client.ping = AsyncMock(side_effect=RedisConnectionError("down"))
        with patch("mylist.cache.backend.redis.from_url", return_value=client) as from_url:
            backend = RedisBackend("redis://cache:6379/0", timeout=0.25)
            await backend.start()
        assert from_url.call_args.kwargs["socket_timeout"] == 0.25
        assert from_url.call_args.kwargs["decode_responses"] is True
        await backend.stop()
        client.aclose.assert_awaited_once()
