"""My List router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from mylist.api.deps import (
    get_current_user_id,
    get_my_list_service,
    get_mutation_coordinator,
    get_session,
)
from mylist.api.schemas.my_list import (
    AddItemRequest,
    AddItemResponse,
    ListItemOut,
    MessageResponse,
    MyListPage,
)
from mylist.services.mutation_coordinator import MutationCoordinator
from mylist.services.my_list_service import MyListService
from mylist.services.views import ListItemView

router = APIRouter()


@router.get("", response_model=MyListPage)
async def list_items(
    limit: int | None = Query(None),
    cursor: str | None = Query(None),
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
    svc: MyListService = Depends(get_my_list_service),
) -> MyListPage:
    page = await svc.get_page(session, user_id, cursor=cursor, limit=limit)
    return MyListPage.from_view(page)


@router.post("", response_model=AddItemResponse, status_code=status.HTTP_201_CREATED)
async def add_item(
    body: AddItemRequest,
    response: Response,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
    coordinator: MutationCoordinator = Depends(get_mutation_coordinator),
) -> AddItemResponse:
    item, created = await coordinator.add(session, user_id, body.content_id, body.content_type)
    if not created:
        response.status_code = status.HTTP_200_OK
    return AddItemResponse(
        message="Item added to list" if created else "Item already in list",
        item=ListItemOut.from_view(ListItemView.from_row(item)),
    )


@router.delete("/{content_id}", response_model=MessageResponse)
async def remove_item(
    content_id: str,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
    coordinator: MutationCoordinator = Depends(get_mutation_coordinator),
) -> MessageResponse:
    removed = await coordinator.remove(session, user_id, content_id)
    return MessageResponse(message="Item removed from list" if removed else "Item not in list")
