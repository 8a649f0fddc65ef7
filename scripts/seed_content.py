"""Seed the content catalogue and a few demo lists.

1. Create tables if missing
2. Upsert movies and TV shows (by id)
3. Add list items for the demo users, oldest first, so the list order
   matches the order below
"""

import asyncio
import sys
from datetime import date
from pathlib import Path

# Add project root to path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from dotenv import load_dotenv

load_dotenv(ROOT / ".env")

from sqlalchemy.dialects.postgresql import insert

from mylist.core.config import get_settings
from mylist.core.database import Base, create_engine, create_session_factory
from mylist.dao.my_list_dao import MyListDAO
from mylist.models.movie import Movie
from mylist.models.tv_show import TVShow

MOVIES = [
    {
        "id": "movie-inception",
        "title": "Inception",
        "description": "A thief who steals corporate secrets through dream-sharing.",
        "genres": ["Action", "SciFi"],
        "release_date": date(2010, 7, 16),
        "director": "Christopher Nolan",
        "actors": ["Leonardo DiCaprio", "Elliot Page"],
    },
    {
        "id": "movie-amelie",
        "title": "Amélie",
        "description": "A shy waitress decides to change the lives of those around her.",
        "genres": ["Comedy", "Romance"],
        "release_date": date(2001, 4, 25),
        "director": "Jean-Pierre Jeunet",
        "actors": ["Audrey Tautou"],
    },
    {
        "id": "movie-hereditary",
        "title": "Hereditary",
        "description": "A grieving family is haunted by tragic occurrences.",
        "genres": ["Horror", "Drama"],
        "release_date": date(2018, 6, 8),
        "director": "Ari Aster",
        "actors": ["Toni Collette"],
    },
]

TV_SHOWS = [
    {
        "id": "tvshow-dark",
        "title": "Dark",
        "description": "A missing child sets four families on a hunt through time.",
        "genres": ["SciFi", "Drama"],
        "episodes": [
            {"seasonNumber": 1, "episodeNumber": 1, "releaseDate": "2017-12-01"},
            {"seasonNumber": 1, "episodeNumber": 2, "releaseDate": "2017-12-01"},
        ],
    },
    {
        "id": "tvshow-fleabag",
        "title": "Fleabag",
        "description": "A dry-witted woman navigates life and love in London.",
        "genres": ["Comedy", "Drama"],
        "episodes": [{"seasonNumber": 1, "episodeNumber": 1, "releaseDate": "2016-07-21"}],
    },
]

LISTS = {
    "user-1": [
        ("movie-inception", "movie"),
        ("tvshow-dark", "tvshow"),
        ("movie-amelie", "movie"),
    ],
    "user-2": [
        ("tvshow-fleabag", "tvshow"),
        ("movie-hereditary", "movie"),
    ],
}


async def main() -> None:
    settings = get_settings()
    engine = create_engine(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = create_session_factory(engine)
    dao = MyListDAO()
    async with factory() as session:
        async with session.begin():
            for model, rows in ((Movie, MOVIES), (TVShow, TV_SHOWS)):
                for row in rows:
                    stmt = insert(model).values(**row).on_conflict_do_nothing(index_elements=["id"])
                    await session.execute(stmt)
            print(f"  catalogue: {len(MOVIES)} movies, {len(TV_SHOWS)} tv shows")

    # One transaction per item so each gets a distinct created_at.
    for user_id, items in LISTS.items():
        added = 0
        for content_id, content_type in items:
            async with factory() as session:
                async with session.begin():
                    _, created = await dao.insert_if_absent(
                        session,
                        user_id=user_id,
                        content_id=content_id,
                        content_type=content_type,
                    )
                    added += created
        print(f"  {user_id}: {added} new list items")

    await engine.dispose()
    # Cached pages for these users are not invalidated; flush Redis after re-seeding.


if __name__ == "__main__":
    asyncio.run(main())
