"""my_list_items table."""

import uuid

from sqlalchemy import CheckConstraint, Index, Text, UniqueConstraint, desc, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from mylist.core.database import Base, TimestampMixin

CONTENT_TYPES = ("movie", "tvshow")
_TYPE_LIST = ", ".join(f"'{t}'" for t in CONTENT_TYPES)


class MyListItem(TimestampMixin, Base):
    __tablename__ = "my_list_items"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid()
    )
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    content_id: Mapped[str] = mapped_column(Text, nullable=False)
    content_type: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "content_id", name="uq_my_list_items_user_content"),
        CheckConstraint(f"content_type IN ({_TYPE_LIST})", name="content_type"),
        Index("idx_my_list_items_cursor", "user_id", desc("created_at"), desc("id")),
    )
