"""LockManager — short-lived rebuild locks per (user, cursor signature)."""

from __future__ import annotations

import uuid

import structlog

from mylist.cache.backend import CacheBackend
from mylist.cache.keys import lock_key

log = structlog.get_logger()


class LockManager:
    """Stampede protection for cold page rebuilds.

    Acquisition is a single ``SET NX EX``; release is compare-and-delete on
    the holder token, so a slow rebuilder whose lock already expired can
    never delete a lock that a newer holder acquired in the meantime. The
    TTL is the only recovery path if a holder dies mid-rebuild.
    """

    def __init__(self, backend: CacheBackend, ttl_seconds: int = 5) -> None:
        if ttl_seconds < 1:
            raise ValueError("lock ttl must be at least one second")
        self._backend = backend
        self._ttl = ttl_seconds

    async def try_acquire(
        self, user_id: str, signature: str, ttl: int | None = None
    ) -> str | None:
        """Return a holder token, or None if someone else is rebuilding."""
        token = uuid.uuid4().hex
        acquired = await self._backend.set_if_absent(
            lock_key(user_id, signature), token, ttl or self._ttl
        )
        if not acquired:
            log.debug("rebuild lock busy", user_id=user_id, signature=signature)
            return None
        return token

    async def release(self, user_id: str, signature: str, token: str) -> bool:
        """Delete the lock only if *token* still owns it."""
        released = await self._backend.delete_if_equals(lock_key(user_id, signature), token)
        if not released:
            log.warning(
                "rebuild lock expired before release",
                user_id=user_id,
                signature=signature,
            )
        return released
