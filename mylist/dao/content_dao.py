"""ContentDAO — existence checks against the movie / TV show catalogue."""

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from mylist.models.movie import Movie
from mylist.models.my_list_item import CONTENT_TYPES
from mylist.models.tv_show import TVShow

_TABLES = {
    "movie": Movie,
    "tvshow": TVShow,
}


class ContentDAO:
    """Read-only view of the catalogue; list items only reference it by id."""

    @staticmethod
    def supported_types() -> tuple[str, ...]:
        return CONTENT_TYPES

    async def content_exists(
        self, session: AsyncSession, content_id: str, content_type: str
    ) -> bool:
        """True if *content_id* exists in the catalogue for *content_type*.

        Unknown content types are reported as non-existent.
        """
        model = _TABLES.get(content_type)
        if model is None:
            return False
        stmt = select(exists().where(model.id == content_id))
        result = await session.execute(stmt)
        return result.scalar_one()
