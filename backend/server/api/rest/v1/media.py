from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from application.library import LibraryService, LibraryStorage
from server.api.rest.dependencies import get_library_service, get_library_storage
from server.models.schemas import MediaPayload, MediaResponse

router = APIRouter(prefix="/api/v1", tags=["media-v1"])


@router.post("/media", response_model=MediaResponse)
async def resolve_media(
    req: MediaPayload,
    service: LibraryService = Depends(get_library_service),
) -> MediaResponse:
    """按 (externalId, kind) 查找媒体，不存在则写入目录。"""
    media = await service.resolve_media(req.to_draft())
    return MediaResponse.from_domain(media)


@router.get("/media/lookup", response_model=MediaResponse)
async def lookup_media(
    external_id: int = Query(..., alias="externalId", gt=0),
    kind: Literal["movie", "tv"] = Query(...),
    storage: LibraryStorage = Depends(get_library_storage),
) -> MediaResponse:
    media = await storage.media.get_media_by_external_id(external_id, kind)
    if media is None:
        raise HTTPException(status_code=404, detail="media not found")
    return MediaResponse.from_domain(media)


@router.get("/media/{media_id}", response_model=MediaResponse)
async def get_media(
    media_id: int = Path(..., gt=0),
    storage: LibraryStorage = Depends(get_library_storage),
) -> MediaResponse:
    media = await storage.media.get_media(media_id)
    if media is None:
        raise HTTPException(status_code=404, detail="media not found")
    return MediaResponse.from_domain(media)
