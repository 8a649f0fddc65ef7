"""VersionStore — one monotonically increasing integer per user.

Every page key embeds the version, so bumping it makes all of a user's
cached pages unreachable in O(1) without deleting them.
"""

from __future__ import annotations

import structlog

from mylist.cache.backend import CacheBackend, CacheUnavailableError
from mylist.cache.keys import version_key

log = structlog.get_logger()

INITIAL_VERSION = 1


class VersionStore:
    def __init__(self, backend: CacheBackend, ttl_seconds: int | None = None) -> None:
        self._backend = backend
        # Optional sliding expiry; must outlive every page TTL.
        self._ttl = ttl_seconds or None

    async def get(self, user_id: str) -> int:
        """Return the current version, creating it on first access.

        Creation is ``SET NX`` so concurrent first readers agree on one value.
        """
        key = version_key(user_id)
        raw = await self._backend.get(key)
        if raw is None:
            created = await self._backend.set_if_absent(key, str(INITIAL_VERSION), self._ttl)
            if created:
                log.debug("version initialised", user_id=user_id, version=INITIAL_VERSION)
                return INITIAL_VERSION
            raw = await self._backend.get(key)
            if raw is None:
                raise CacheUnavailableError(f"version key {key} vanished during creation")
        elif self._ttl:
            await self._backend.expire(key, self._ttl)
        return int(raw)

    async def bump(self, user_id: str) -> int:
        """Atomically increment and return the new version.

        The key is initialised first so the bump always moves strictly past
        the version readers may already have seen.
        """
        key = version_key(user_id)
        await self._backend.set_if_absent(key, str(INITIAL_VERSION), self._ttl)
        version = await self._backend.incr(key)
        if self._ttl:
            await self._backend.expire(key, self._ttl)
        log.debug("version bumped", user_id=user_id, version=version)
        return version
