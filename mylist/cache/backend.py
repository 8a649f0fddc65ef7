"""Cache / lock backend — the narrow key-value interface the core relies on.

All cross-instance coordination (versions, page entries, rebuild locks)
goes through this interface; nothing is kept in process memory.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

log = structlog.get_logger()

# Deletes KEYS[1] only while it still holds ARGV[1].
_COMPARE_AND_DELETE = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""


class CacheUnavailableError(Exception):
    """The cache backend failed or timed out. Callers degrade to the store."""


class CacheBackend(Protocol):
    """Primitives consumed by VersionStore, LockManager and PageCache."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl: int | None = None) -> None: ...

    async def set_if_absent(self, key: str, value: str, ttl: int | None = None) -> bool: ...

    async def delete(self, key: str) -> None: ...

    async def delete_if_equals(self, key: str, value: str) -> bool: ...

    async def incr(self, key: str) -> int: ...

    async def expire(self, key: str, ttl: int) -> None: ...


@contextmanager
def _translate(op: str, key: str) -> Iterator[None]:
    try:
        yield
    except (RedisError, asyncio.TimeoutError, OSError) as exc:
        log.warning("cache call failed", op=op, key=key, error=str(exc))
        raise CacheUnavailableError(f"{op} {key}: {exc}") from exc


class RedisBackend:
    """``CacheBackend`` on top of ``redis.asyncio``.

    Every command is bounded by *timeout* (socket and connect); any Redis
    error is re-raised as :class:`CacheUnavailableError`.
    """

    def __init__(self, redis_url: str, timeout: float = 0.5) -> None:
        self.redis_url = redis_url
        self.timeout = timeout
        self._client: redis.Redis | None = None

    async def start(self) -> None:
        """Create the connection pool and probe it.

        An unreachable Redis is logged, not raised: the service keeps
        serving from the store until the cache comes back.
        """
        self._client = redis.from_url(
            self.redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=self.timeout,
            socket_timeout=self.timeout,
            health_check_interval=30,
        )
        if await self.ping():
            log.info("cache backend started", url=self.redis_url)
        else:
            log.warning("cache backend unreachable at startup", url=self.redis_url)

    async def stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            log.info("cache backend stopped")

    async def ping(self) -> bool:
        if self._client is None:
            return False
        try:
            return bool(await self._client.ping())
        except (RedisError, asyncio.TimeoutError, OSError):
            return False

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            raise CacheUnavailableError("cache backend not started")
        return self._client

    # ── CacheBackend ─────────────────────────────────────────────────────

    async def get(self, key: str) -> str | None:
        with _translate("get", key):
            return await self.client.get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        with _translate("set", key):
            await self.client.set(key, value, ex=ttl)

    async def set_if_absent(self, key: str, value: str, ttl: int | None = None) -> bool:
        with _translate("set_if_absent", key):
            return bool(await self.client.set(key, value, nx=True, ex=ttl))

    async def delete(self, key: str) -> None:
        with _translate("delete", key):
            await self.client.delete(key)

    async def delete_if_equals(self, key: str, value: str) -> bool:
        with _translate("delete_if_equals", key):
            return bool(await self.client.eval(_COMPARE_AND_DELETE, 1, key, value))

    async def incr(self, key: str) -> int:
        with _translate("incr", key):
            return int(await self.client.incr(key))

    async def expire(self, key: str, ttl: int) -> None:
        with _translate("expire", key):
            await self.client.expire(key, ttl)
