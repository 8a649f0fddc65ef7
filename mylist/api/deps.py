"""Dependency injection — settings, session, cache backend, service singletons."""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Header
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from mylist.cache.backend import RedisBackend
from mylist.cache.lock_manager import LockManager
from mylist.cache.page_cache import PageCache
from mylist.cache.version_store import VersionStore
from mylist.core.config import get_settings
from mylist.core.database import create_engine, create_session_factory
from mylist.dao.content_dao import ContentDAO
from mylist.dao.my_list_dao import MyListDAO
from mylist.services import ValidationError
from mylist.services.mutation_coordinator import MutationCoordinator
from mylist.services.my_list_service import MyListService
from mylist.services.page_reader import PageReader

_settings = get_settings()

# ---------------------------------------------------------------------------
# DAO singletons
# ---------------------------------------------------------------------------
_my_list_dao = MyListDAO()
_content_dao = ContentDAO()

# ---------------------------------------------------------------------------
# Cache singletons (backend connected by app lifespan)
# ---------------------------------------------------------------------------
_cache_backend = RedisBackend(_settings.redis_url, timeout=_settings.cache_timeout_seconds)
_versions = VersionStore(_cache_backend, ttl_seconds=_settings.version_ttl_seconds)
_locks = LockManager(_cache_backend, ttl_seconds=_settings.lock_ttl_seconds)
_pages = PageCache(_cache_backend, ttl_seconds=_settings.page_ttl_seconds)

# ---------------------------------------------------------------------------
# Service singletons
# ---------------------------------------------------------------------------
_page_reader = PageReader(
    _my_list_dao,
    page_size_default=_settings.page_size_default,
    page_size_max=_settings.page_size_max,
    timeout=_settings.store_timeout_seconds,
)
_my_list_service = MyListService(
    _page_reader,
    _versions,
    _pages,
    _locks,
    lock_wait_ms=_settings.lock_wait_ms,
    lock_poll_interval_ms=_settings.lock_poll_interval_ms,
)
_mutation_coordinator = MutationCoordinator(
    _my_list_dao,
    _content_dao,
    _versions,
    _pages,
    optimistic_limits=_settings.optimistic_limits,
    timeout=_settings.store_timeout_seconds,
)

# ---------------------------------------------------------------------------
# Engine / session factory (initialised by app lifespan)
# ---------------------------------------------------------------------------
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def init_session_factory(database_url: str | None = None) -> async_sessionmaker[AsyncSession]:
    """Create the async engine and session factory. Called once at startup."""
    global _engine, _session_factory  # noqa: PLW0603
    _engine = create_engine(
        database_url or _settings.database_url,
        statement_timeout=_settings.store_timeout_seconds,
    )
    _session_factory = create_session_factory(_engine)
    return _session_factory


async def dispose_engine() -> None:
    """Dispose the async engine, closing all pooled connections."""
    global _engine  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
        _engine = None


def set_session_factory(factory: async_sessionmaker[AsyncSession]) -> None:
    """Override session factory (for testing)."""
    global _session_factory  # noqa: PLW0603
    _session_factory = factory


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a per-request session.

    Services commit their own writes (the store must be committed before
    the cache version moves); anything uncommitted is rolled back on close.
    """
    if _session_factory is None:
        raise RuntimeError("call init_session_factory() before handling requests")
    async with _session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Caller identity (header stand-in for real auth)
# ---------------------------------------------------------------------------


async def get_current_user_id(x_user_id: str | None = Header(None)) -> str:
    if x_user_id is None or not x_user_id.strip():
        raise ValidationError("missing x-user-id header")
    return x_user_id.strip()


# ---------------------------------------------------------------------------
# Getters (for Depends())
# ---------------------------------------------------------------------------


def get_cache_backend() -> RedisBackend:
    return _cache_backend


def get_my_list_service() -> MyListService:
    return _my_list_service


def get_mutation_coordinator() -> MutationCoordinator:
    return _mutation_coordinator
