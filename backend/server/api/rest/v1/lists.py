from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from fastapi.responses import Response

from application.library import LibraryService, LibraryStorage
from domain.library import ListItemPatch, ListPatch, ValidationError
from server.api.rest.dependencies import get_library_service, get_library_storage
from server.models.schemas import (
    ListCreateRequest,
    ListItemAddRequest,
    ListItemResponse,
    ListItemUpdateRequest,
    ListMembershipResponse,
    ListUpdateRequest,
    ListWithItemsResponse,
    UserListResponse,
)

router = APIRouter(prefix="/api/v1", tags=["lists-v1"])


@router.get("/users/{user_id}/lists", response_model=List[UserListResponse])
async def lists_by_user(
    user_id: str,
    storage: LibraryStorage = Depends(get_library_storage),
) -> List[UserListResponse]:
    lists = await storage.lists.lists_by_user(user_id)
    return [UserListResponse.from_domain(item) for item in lists]


@router.post("/users/{user_id}/lists", response_model=UserListResponse, status_code=201)
async def create_list(
    user_id: str,
    req: ListCreateRequest,
    storage: LibraryStorage = Depends(get_library_storage),
) -> UserListResponse:
    created = await storage.lists.create_list(
        user_id,
        req.name,
        description=req.description,
        is_public=req.is_public,
    )
    return UserListResponse.from_domain(created)


@router.get("/users/{user_id}/media/{media_id}/lists", response_model=ListMembershipResponse)
async def lists_containing(
    user_id: str,
    media_id: int = Path(..., gt=0),
    storage: LibraryStorage = Depends(get_library_storage),
) -> ListMembershipResponse:
    """该用户哪些清单里包含此媒体。"""
    return ListMembershipResponse(list_ids=await storage.lists.lists_containing(user_id, media_id))


@router.get("/lists/{list_id}", response_model=ListWithItemsResponse)
async def get_list(
    list_id: int = Path(..., gt=0),
    viewer_id: Optional[str] = Query(default=None, alias="viewerId"),
    storage: LibraryStorage = Depends(get_library_storage),
) -> ListWithItemsResponse:
    result = await storage.lists.get_list_with_items(list_id, viewer_user_id=viewer_id)
    if result is None:
        raise HTTPException(status_code=404, detail="list not found")
    return ListWithItemsResponse.from_result(result)


@router.patch("/lists/{list_id}", response_model=UserListResponse)
async def update_list(
    req: ListUpdateRequest,
    list_id: int = Path(..., gt=0),
    storage: LibraryStorage = Depends(get_library_storage),
) -> UserListResponse:
    patch = ListPatch.from_mapping(req.model_dump(exclude_unset=True))
    updated = await storage.lists.update_list(list_id, patch)
    if updated is None:
        raise HTTPException(status_code=404, detail="list not found")
    return UserListResponse.from_domain(updated)


@router.delete("/lists/{list_id}", status_code=204, response_class=Response)
async def delete_list(
    list_id: int = Path(..., gt=0),
    storage: LibraryStorage = Depends(get_library_storage),
) -> Response:
    await storage.lists.delete_list(list_id)
    return Response(status_code=204)


@router.post("/lists/{list_id}/items", response_model=ListItemResponse, status_code=201)
async def add_list_item(
    req: ListItemAddRequest,
    list_id: int = Path(..., gt=0),
    storage: LibraryStorage = Depends(get_library_storage),
    service: LibraryService = Depends(get_library_service),
) -> ListItemResponse:
    """加入清单：给 media 快照时先解析/写入媒体目录；重复加入返回 409。"""
    if req.media is not None:
        if req.media_id is not None:
            raise ValidationError("provide either mediaId or media, not both")
        item = await service.add_to_list(
            list_id,
            req.media.to_draft(),
            status=req.status,
            seasons_watched=req.seasons_watched,
        )
    else:
        if req.media_id is None:
            raise ValidationError("mediaId or media is required")
        item = await storage.lists.add_item(
            list_id,
            req.media_id,
            status=req.status,
            seasons_watched=req.seasons_watched,
        )
    return ListItemResponse.from_domain(item)


@router.patch("/lists/{list_id}/items/{item_id}", response_model=ListItemResponse)
async def update_list_item(
    req: ListItemUpdateRequest,
    list_id: int = Path(..., gt=0),
    item_id: int = Path(..., gt=0),
    storage: LibraryStorage = Depends(get_library_storage),
) -> ListItemResponse:
    patch = ListItemPatch.from_mapping(req.model_dump(exclude_unset=True))
    current = await storage.lists.get_list_with_items(list_id)
    if current is None or all(view.item.id != item_id for view in current.items):
        raise HTTPException(status_code=404, detail="list item not found")
    updated = await storage.lists.update_item(item_id, patch)
    if updated is None:
        raise HTTPException(status_code=404, detail="list item not found")
    return ListItemResponse.from_domain(updated)


@router.delete("/lists/{list_id}/items/{media_id}", status_code=204, response_class=Response)
async def remove_list_item(
    list_id: int = Path(..., gt=0),
    media_id: int = Path(..., gt=0),
    storage: LibraryStorage = Depends(get_library_storage),
) -> Response:
    await storage.lists.remove_item(list_id, media_id)
    return Response(status_code=204)
