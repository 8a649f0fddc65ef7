"""movies table (content catalogue)."""

from datetime import date
from typing import Optional

from sqlalchemy import Date, Text, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from mylist.core.database import Base, TimestampMixin


class Movie(TimestampMixin, Base):
    __tablename__ = "movies"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    genres: Mapped[list] = mapped_column(JSONB, nullable=False, server_default=text("'[]'"))
    release_date: Mapped[Optional[date]] = mapped_column(Date)
    director: Mapped[Optional[str]] = mapped_column(Text)
    actors: Mapped[list] = mapped_column(JSONB, nullable=False, server_default=text("'[]'"))
