"""Runtime settings — read once from MYLIST_* environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache


def _int(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


def _float(name: str, default: float) -> float:
    return float(os.environ.get(name, str(default)))


def _limits(name: str, default: int) -> tuple[int, ...]:
    raw = os.environ.get(name, "")
    values = [int(part) for part in raw.split(",") if part.strip()]
    return tuple(values) or (default,)


@dataclass(frozen=True)
class Settings:
    """Service configuration.

    Timeouts are in seconds unless the name says otherwise. A
    ``version_ttl_seconds`` of 0 means version keys never expire.
    """

    database_url: str = "postgresql+asyncpg://localhost/mylist"
    redis_url: str = "redis://localhost:6379/0"
    cursor_secret: str = "changeme-cursor-secret"

    page_size_default: int = 20
    page_size_max: int = 100

    page_ttl_seconds: int = 300
    lock_ttl_seconds: int = 5
    lock_wait_ms: int = 1000
    lock_poll_interval_ms: int = 25
    version_ttl_seconds: int = 0

    cache_timeout_seconds: float = 0.5
    store_timeout_seconds: float = 2.0

    optimistic_limits: tuple[int, ...] = field(default=(20,))
    cors_origins: tuple[str, ...] = field(default=("http://localhost:3000",))

    def __post_init__(self) -> None:
        # A version key that expires while pages under it are alive restarts
        # at the initial version and can make those pages current again.
        if self.version_ttl_seconds < 0 or (
            0 < self.version_ttl_seconds <= self.page_ttl_seconds
        ):
            raise ValueError(
                "MYLIST_VERSION_TTL_SECONDS must be 0 or greater than "
                f"MYLIST_PAGE_TTL_SECONDS ({self.page_ttl_seconds}), "
                f"got {self.version_ttl_seconds}"
            )

    @classmethod
    def from_env(cls) -> Settings:
        page_size_default = _int("MYLIST_PAGE_SIZE_DEFAULT", 20)
        cors = os.environ.get("MYLIST_CORS_ORIGINS", "http://localhost:3000")
        return cls(
            database_url=os.environ.get(
                "MYLIST_DATABASE_URL", "postgresql+asyncpg://localhost/mylist"
            ),
            redis_url=os.environ.get("MYLIST_REDIS_URL", "redis://localhost:6379/0"),
            cursor_secret=os.environ.get("MYLIST_CURSOR_SECRET", "changeme-cursor-secret"),
            page_size_default=page_size_default,
            page_size_max=_int("MYLIST_PAGE_SIZE_MAX", 100),
            page_ttl_seconds=_int("MYLIST_PAGE_TTL_SECONDS", 300),
            lock_ttl_seconds=_int("MYLIST_LOCK_TTL_SECONDS", 5),
            lock_wait_ms=_int("MYLIST_LOCK_WAIT_MS", 1000),
            lock_poll_interval_ms=_int("MYLIST_LOCK_POLL_INTERVAL_MS", 25),
            version_ttl_seconds=_int("MYLIST_VERSION_TTL_SECONDS", 0),
            cache_timeout_seconds=_float("MYLIST_CACHE_TIMEOUT_SECONDS", 0.5),
            store_timeout_seconds=_float("MYLIST_STORE_TIMEOUT_SECONDS", 2.0),
            optimistic_limits=_limits("MYLIST_OPTIMISTIC_LIMITS", page_size_default),
            cors_origins=tuple(o.strip() for o in cors.split(",") if o.strip()),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings (env is read on first call)."""
    return Settings.from_env()
