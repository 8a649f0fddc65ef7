"""My List request/response schemas (camelCase on the wire)."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from mylist.services.views import ListItemView, PageView


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ListItemOut(_CamelModel):
    id: uuid.UUID
    content_id: str
    content_type: str
    created_at: datetime

    @classmethod
    def from_view(cls, view: ListItemView) -> ListItemOut:
        return cls(
            id=view.id,
            content_id=view.content_id,
            content_type=view.content_type,
            created_at=view.created_at,
        )


class MyListPage(_CamelModel):
    items: list[ListItemOut]
    next_cursor: str | None
    has_more: bool

    @classmethod
    def from_view(cls, page: PageView) -> MyListPage:
        return cls(
            items=[ListItemOut.from_view(item) for item in page.items],
            next_cursor=page.next_cursor,
            has_more=page.has_more,
        )


class AddItemRequest(_CamelModel):
    content_id: str = Field(min_length=1)
    content_type: str = Field(min_length=1)


class AddItemResponse(_CamelModel):
    message: str
    item: ListItemOut


class MessageResponse(_CamelModel):
    message: str
