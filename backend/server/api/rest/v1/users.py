from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from application.library import LibraryStorage
from server.api.rest.dependencies import get_library_storage
from server.models.schemas import UserProfileUpdateRequest, UserResponse, UserSyncRequest

router = APIRouter(prefix="/api/v1", tags=["users-v1"])


@router.post("/users/sync", response_model=UserResponse)
async def sync_user(
    req: UserSyncRequest,
    storage: LibraryStorage = Depends(get_library_storage),
) -> UserResponse:
    """首次登录时创建用户；已存在则原样返回。"""
    user = await storage.users.sync_user(req.id, req.email, display_name=req.display_name)
    return UserResponse.from_domain(user)


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    storage: LibraryStorage = Depends(get_library_storage),
) -> UserResponse:
    user = await storage.users.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="user not found")
    return UserResponse.from_domain(user)


@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_profile(
    user_id: str,
    req: UserProfileUpdateRequest,
    storage: LibraryStorage = Depends(get_library_storage),
) -> UserResponse:
    fields = req.model_dump(exclude_unset=True)
    user = await storage.users.update_profile(user_id, **fields)
    if user is None:
        raise HTTPException(status_code=404, detail="user not found")
    return UserResponse.from_domain(user)
