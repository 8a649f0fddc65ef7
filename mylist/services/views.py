"""Read-only page views — what the cache stores and the API returns."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime

from mylist.models.my_list_item import MyListItem


@dataclass(frozen=True)
class ListItemView:
    id: uuid.UUID
    content_id: str
    content_type: str
    created_at: datetime

    @classmethod
    def from_row(cls, row: MyListItem) -> ListItemView:
        return cls(
            id=row.id,
            content_id=row.content_id,
            content_type=row.content_type,
            created_at=row.created_at,
        )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "contentId": self.content_id,
            "contentType": self.content_type,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> ListItemView:
        return cls(
            id=uuid.UUID(data["id"]),
            content_id=data["contentId"],
            content_type=data["contentType"],
            created_at=datetime.fromisoformat(data["createdAt"]),
        )


@dataclass(frozen=True)
class PageView:
    """A fully serialised page: items newest first plus continuation info."""

    items: list[ListItemView] = field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "nextCursor": self.next_cursor,
            "hasMore": self.has_more,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json(cls, raw: str) -> PageView:
        """Parse a cached page.

        Raises ``ValueError`` if *raw* is not a well-formed page.
        """
        try:
            data = json.loads(raw)
            return cls(
                items=[ListItemView.from_dict(item) for item in data["items"]],
                next_cursor=data["nextCursor"],
                has_more=bool(data["hasMore"]),
            )
        except (AttributeError, KeyError, TypeError) as exc:
            raise ValueError(f"malformed cached page: {exc}") from exc
