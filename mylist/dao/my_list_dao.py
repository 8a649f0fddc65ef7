"""MyListDAO — my_list_items table operations."""

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from mylist.dao.base import BaseDAO, Cursor, Page
from mylist.models.my_list_item import MyListItem


class MyListDAO(BaseDAO[MyListItem]):
    model = MyListItem

    # ── read ──────────────────────────────────────────────────────────────

    async def query_page(
        self,
        session: AsyncSession,
        user_id: str,
        cursor: Cursor | None,
        limit: int,
    ) -> Page[MyListItem]:
        """One page of *user_id*'s list, newest first.

        An unknown user simply has no rows, so the page is empty.
        """
        query = select(MyListItem).where(MyListItem.user_id == user_id)
        return await self.paginate(session, query, cursor, limit)

    async def get_item(
        self, session: AsyncSession, user_id: str, content_id: str
    ) -> MyListItem | None:
        return await self.get_by_field(session, user_id=user_id, content_id=content_id)

    # ── write ─────────────────────────────────────────────────────────────

    async def insert_if_absent(
        self,
        session: AsyncSession,
        *,
        user_id: str,
        content_id: str,
        content_type: str,
    ) -> tuple[MyListItem, bool]:
        """Insert a list item unless (user_id, content_id) already exists.

        Returns ``(item, created)``. On conflict the existing row is returned
        with ``created=False``; the unique constraint is what makes repeated
        adds idempotent under concurrency.
        """
        stmt = (
            insert(MyListItem)
            .values(user_id=user_id, content_id=content_id, content_type=content_type)
            .on_conflict_do_nothing(constraint="uq_my_list_items_user_content")
            .returning(MyListItem)
        )
        result = await session.execute(stmt)
        row = result.scalars().first()
        if row is not None:
            return row, True
        existing = await self.get_item(session, user_id, content_id)
        if existing is None:
            # Conflicting row was deleted between the INSERT and the SELECT.
            raise LookupError(f"list item {user_id}/{content_id} vanished during insert")
        return existing, False

    async def delete_if_exists(
        self, session: AsyncSession, user_id: str, content_id: str
    ) -> bool:
        """Delete the item; return whether a row was actually removed."""
        stmt = (
            delete(MyListItem)
            .where(MyListItem.user_id == user_id, MyListItem.content_id == content_id)
            .returning(MyListItem.id)
        )
        result = await session.execute(stmt)
        return result.first() is not None
