from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query

from application.library import StatsService
from config.settings import RECENT_ACTIVITY_DEFAULT_LIMIT
from server.api.rest.dependencies import get_stats_service
from server.models.schemas import ActivityEventResponse, UserStatsResponse

router = APIRouter(prefix="/api/v1", tags=["stats-v1"])


@router.get("/users/{user_id}/stats", response_model=UserStatsResponse)
async def get_user_stats(
    user_id: str,
    service: StatsService = Depends(get_stats_service),
) -> UserStatsResponse:
    """已看电影/剧集数量、平均评分与累计观看时长（小时）。"""
    return UserStatsResponse.from_domain(await service.get_user_stats(user_id))


@router.get("/users/{user_id}/activity", response_model=List[ActivityEventResponse])
async def get_recent_activity(
    user_id: str,
    limit: int = Query(RECENT_ACTIVITY_DEFAULT_LIMIT, ge=1, le=100),
    service: StatsService = Depends(get_stats_service),
) -> List[ActivityEventResponse]:
    events = await service.get_recent_activity(user_id, limit=limit)
    return [ActivityEventResponse.from_domain(e) for e in events]
