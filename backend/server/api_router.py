from __future__ import annotations

from fastapi import APIRouter

import server.api.rest.v1.activity as activity_v1
import server.api.rest.v1.lists as lists_v1
import server.api.rest.v1.media as media_v1
import server.api.rest.v1.stats as stats_v1
import server.api.rest.v1.users as users_v1

# Canonical API router aggregator (v1 only).
api_router = APIRouter()
api_router.include_router(users_v1.router)
api_router.include_router(media_v1.router)
api_router.include_router(activity_v1.router)
api_router.include_router(lists_v1.router)
api_router.include_router(stats_v1.router)

__all__ = ["api_router"]
