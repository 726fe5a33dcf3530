from __future__ import annotations

from typing import Any, Callable, List, Optional

from fastapi import APIRouter, Depends, Path
from fastapi.responses import Response

from application.library import LibraryService, LibraryStorage
from domain.library import ACTIVITY_KINDS, ACTIVITY_WATCHED, ValidationError
from server.api.rest.dependencies import get_library_service, get_library_storage
from server.models.schemas import (
    ActivityAddRequest,
    ActivityEntryResponse,
    ActivityItemResponse,
    ExistsResponse,
    MediaPayload,
    RatingUpdateRequest,
)

router = APIRouter(prefix="/api/v1", tags=["activity-v1"])


async def resolve_media_id(
    service: LibraryService,
    media_id: Optional[int],
    media: Optional[MediaPayload],
) -> int:
    """Catalog id of the request's media: the given id, or resolve-or-create the snapshot."""
    if media_id is not None and media is not None:
        raise ValidationError("provide either mediaId or media, not both")
    if media_id is not None:
        return media_id
    if media is None:
        raise ValidationError("mediaId or media is required")
    resolved = await service.resolve_media(media.to_draft())
    return resolved.id


def _list_endpoint(kind: str) -> Callable[..., Any]:
    async def list_activity(
        user_id: str,
        storage: LibraryStorage = Depends(get_library_storage),
    ) -> List[ActivityEntryResponse]:
        entries = await storage.activity(kind).list_by_user(user_id)
        return [ActivityEntryResponse.from_entry(e) for e in entries]

    return list_activity


def _add_endpoint(kind: str) -> Callable[..., Any]:
    async def add_activity(
        user_id: str,
        req: ActivityAddRequest,
        storage: LibraryStorage = Depends(get_library_storage),
        service: LibraryService = Depends(get_library_service),
    ) -> ActivityItemResponse:
        """加入待看/已看/收藏；重复添加返回 409。"""
        if req.rating is not None and kind != ACTIVITY_WATCHED:
            raise ValidationError(f"rating is only accepted by the watched store, not {kind}")
        media_id = await resolve_media_id(service, req.media_id, req.media)
        item = await storage.activity(kind).add(user_id, media_id, rating=req.rating)
        return ActivityItemResponse.from_domain(item)

    return add_activity


def _exists_endpoint(kind: str) -> Callable[..., Any]:
    async def activity_exists(
        user_id: str,
        media_id: int = Path(..., gt=0),
        storage: LibraryStorage = Depends(get_library_storage),
    ) -> ExistsResponse:
        return ExistsResponse(exists=await storage.activity(kind).exists(user_id, media_id))

    return activity_exists


def _remove_endpoint(kind: str) -> Callable[..., Any]:
    async def remove_activity(
        user_id: str,
        media_id: int = Path(..., gt=0),
        storage: LibraryStorage = Depends(get_library_storage),
    ) -> Response:
        await storage.activity(kind).remove(user_id, media_id)
        return Response(status_code=204)

    return remove_activity


# watchlist / watched / favorites share one set of routes; registered with
# literal paths so they never shadow /users/{user_id}/lists and friends.
for _kind in ACTIVITY_KINDS:
    _base = f"/users/{{user_id}}/{_kind}"
    router.add_api_route(
        _base,
        _list_endpoint(_kind),
        methods=["GET"],
        response_model=List[ActivityEntryResponse],
        name=f"list_{_kind}",
    )
    router.add_api_route(
        _base,
        _add_endpoint(_kind),
        methods=["POST"],
        response_model=ActivityItemResponse,
        status_code=201,
        name=f"add_{_kind}",
    )
    router.add_api_route(
        _base + "/{media_id}",
        _exists_endpoint(_kind),
        methods=["GET"],
        response_model=ExistsResponse,
        name=f"{_kind}_exists",
    )
    router.add_api_route(
        _base + "/{media_id}",
        _remove_endpoint(_kind),
        methods=["DELETE"],
        status_code=204,
        response_class=Response,
        name=f"remove_{_kind}",
    )


@router.put("/users/{user_id}/watched/{media_id}", response_model=ActivityItemResponse)
async def rate_watched(
    user_id: str,
    req: RatingUpdateRequest,
    media_id: int = Path(..., gt=0),
    service: LibraryService = Depends(get_library_service),
) -> ActivityItemResponse:
    """Mark as watched, replacing any earlier row so the rating changes."""
    item = await service.mark_watched(user_id, media_id, rating=req.rating)
    return ActivityItemResponse.from_domain(item)
