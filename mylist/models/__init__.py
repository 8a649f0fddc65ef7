"""SQLAlchemy ORM models — one file per table."""

from mylist.models.movie import Movie
from mylist.models.my_list_item import MyListItem
from mylist.models.tv_show import TVShow

__all__ = [
    "Movie",
    "TVShow",
    "MyListItem",
]
