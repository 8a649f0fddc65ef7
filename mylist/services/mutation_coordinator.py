"""MutationCoordinator — add/remove against the store, then cache coherence.

Order is always: commit to the store, bump the user's version, then (add
only) patch the cached first page under the new version. Removal never
patches: it can shift the boundary between any two pages, whereas an add
only ever touches the head of the list.
"""

from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from mylist.cache.backend import CacheUnavailableError
from mylist.cache.page_cache import PageCache, cursor_signature
from mylist.cache.version_store import VersionStore
from mylist.dao.base import encode_cursor
from mylist.dao.content_dao import ContentDAO
from mylist.dao.my_list_dao import MyListDAO
from mylist.models.my_list_item import MyListItem
from mylist.services import InvalidContentError, StoreUnavailableError, store_call
from mylist.services.views import ListItemView, PageView

log = structlog.get_logger()


def prepend_to_head(page: PageView, item: ListItemView, limit: int) -> PageView:
    """Return *page* with *item* placed first, trimmed back to *limit*.

    An item already on the page is moved rather than duplicated. When the
    page overflows, the evicted tail moves to page two, so the page now has
    more and its cursor points at the last item kept.
    """
    combined = [item] + [existing for existing in page.items if existing.id != item.id]
    if len(combined) <= limit:
        return PageView(items=combined, next_cursor=page.next_cursor, has_more=page.has_more)
    kept = combined[:limit]
    last = kept[-1]
    return PageView(
        items=kept,
        next_cursor=encode_cursor(last.created_at, last.id),
        has_more=True,
    )


class MutationCoordinator:
    def __init__(
        self,
        my_list_dao: MyListDAO,
        content_dao: ContentDAO,
        versions: VersionStore,
        pages: PageCache,
        *,
        optimistic_limits: tuple[int, ...] = (20,),
        timeout: float = 2.0,
    ) -> None:
        self._dao = my_list_dao
        self._content_dao = content_dao
        self._versions = versions
        self._pages = pages
        self._optimistic_limits = optimistic_limits
        self._timeout = timeout

    async def add(
        self,
        session: AsyncSession,
        user_id: str,
        content_id: str,
        content_type: str,
    ) -> tuple[MyListItem, bool]:
        """Add *content_id* to the user's list.

        Returns ``(item, created)``. Adding an item that is already present
        succeeds with the existing row and ``created=False``.

        Raises :class:`InvalidContentError` for an unsupported type or
        unknown content and :class:`StoreUnavailableError` on store failure.
        """
        if content_type not in self._content_dao.supported_types():
            raise InvalidContentError(f"unsupported content type: {content_type!r}")

        found = await store_call(
            self._content_dao.content_exists(session, content_id, content_type),
            timeout=self._timeout,
            operation="content_exists",
        )
        if not found:
            raise InvalidContentError(f"{content_type} {content_id!r} does not exist")

        try:
            item, created = await store_call(
                self._dao.insert_if_absent(
                    session,
                    user_id=user_id,
                    content_id=content_id,
                    content_type=content_type,
                ),
                timeout=self._timeout,
                operation="insert_if_absent",
            )
        except LookupError as exc:
            raise StoreUnavailableError(str(exc)) from exc
        await self._commit(session, user_id)

        log.info(
            "list item added" if created else "list item already present",
            user_id=user_id,
            content_id=content_id,
        )
        version = await self._bump(user_id)
        if version is not None:
            await self._patch_head_pages(user_id, version, ListItemView.from_row(item), created)
        return item, created

    async def remove(self, session: AsyncSession, user_id: str, content_id: str) -> bool:
        """Remove *content_id* from the user's list; return whether it was there.

        Removing an absent item is a successful no-op and leaves the
        version untouched, since no visible state changed.
        """
        removed = await store_call(
            self._dao.delete_if_exists(session, user_id, content_id),
            timeout=self._timeout,
            operation="delete_if_exists",
        )
        if not removed:
            await self._commit(session, user_id, changed=False)
            log.info("list item not present", user_id=user_id, content_id=content_id)
            return False

        await self._commit(session, user_id)
        log.info("list item removed", user_id=user_id, content_id=content_id)
        await self._bump(user_id)
        return True

    async def _commit(self, session: AsyncSession, user_id: str, changed: bool = True) -> None:
        try:
            await store_call(session.commit(), timeout=self._timeout, operation="commit")
        except StoreUnavailableError:
            # A failed or timed-out commit may still have been applied server side.
            if changed:
                await self._bump(user_id)
            raise

    async def _bump(self, user_id: str) -> int | None:
        try:
            return await self._versions.bump(user_id)
        except CacheUnavailableError:
            # The store has or may have committed; stale pages age out via page TTL.
            log.error("version bump failed", user_id=user_id)
            return None

    async def _patch_head_pages(
        self, user_id: str, version: int, item: ListItemView, created: bool
    ) -> None:
        previous = version - 1
        for limit in self._optimistic_limits:
            signature = cursor_signature(None, limit)
            try:
                page = await self._pages.get(user_id, signature, previous)
                if page is None:
                    continue
                if created:
                    page = prepend_to_head(page, item, limit)
                await self._pages.put(user_id, signature, version, page)
            except CacheUnavailableError:
                log.warning("optimistic head update skipped", user_id=user_id)
                return
            log.debug("head page patched", user_id=user_id, limit=limit, version=version)
