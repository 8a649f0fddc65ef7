"""tv_shows table (content catalogue)."""

from typing import Optional

from sqlalchemy import Text, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from mylist.core.database import Base, TimestampMixin


class TVShow(TimestampMixin, Base):
    __tablename__ = "tv_shows"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    genres: Mapped[list] = mapped_column(JSONB, nullable=False, server_default=text("'[]'"))
    # [{"episodeNumber", "seasonNumber", "releaseDate", "director", "actors"}]
    episodes: Mapped[list] = mapped_column(JSONB, nullable=False, server_default=text("'[]'"))
