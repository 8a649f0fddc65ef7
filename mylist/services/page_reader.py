"""PageReader — builds one page of a user's list from the durable store."""

from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from mylist.dao.base import decode_cursor
from mylist.dao.my_list_dao import MyListDAO
from mylist.services import ValidationError, store_call
from mylist.services.views import ListItemView, PageView

log = structlog.get_logger()


class PageReader:
    """Uncached page builder; the cache layers sit on top of this."""

    def __init__(
        self,
        my_list_dao: MyListDAO,
        *,
        page_size_default: int = 20,
        page_size_max: int = 100,
        timeout: float = 2.0,
    ) -> None:
        self._dao = my_list_dao
        self._default = page_size_default
        self._max = page_size_max
        self._timeout = timeout

    def normalize_limit(self, limit: int | None) -> int:
        """Apply the default, reject non-positive values and clamp to the max."""
        if limit is None:
            return self._default
        if limit <= 0:
            raise ValidationError(f"limit must be a positive integer, got {limit}")
        return min(limit, self._max)

    async def fetch_page(
        self,
        session: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int | None,
    ) -> PageView:
        """Query ``limit + 1`` rows after *cursor* and build the page.

        Raises ``InvalidCursorError`` for a bad token and
        :class:`StoreUnavailableError` if the query fails or times out.
        """
        limit = self.normalize_limit(limit)
        position = decode_cursor(cursor) if cursor is not None else None
        page = await store_call(
            self._dao.query_page(session, user_id, position, limit),
            timeout=self._timeout,
            operation="query_page",
        )
        log.debug(
            "page built from store",
            user_id=user_id,
            items=len(page.data),
            has_more=page.has_more,
        )
        return PageView(
            items=[ListItemView.from_row(row) for row in page.data],
            next_cursor=page.next_cursor,
            has_more=page.has_more,
        )
