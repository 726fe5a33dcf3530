from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from domain.library import (
    ActivityEntry,
    ActivityEvent,
    ActivityItem,
    ListItem,
    ListItemView,
    ListWithItems,
    MediaDraft,
    MediaItem,
    User,
    UserList,
    UserStats,
)

ListItemStatus = Literal["watched", "watchlist", "watching", "on hold", "dropped"]


class CamelModel(BaseModel):
    """JSON uses camelCase; Python attributes stay snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StrictCamelModel(CamelModel):
    """Request bodies: unknown keys are rejected instead of silently ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


# ===== Users =====


class UserSyncRequest(StrictCamelModel):
    """首次登录同步用户"""

    id: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    display_name: Optional[str] = None


class UserProfileUpdateRequest(StrictCamelModel):
    display_name: Optional[str] = None
    photo_url: Optional[str] = None


class UserResponse(CamelModel):
    id: str
    email: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            photo_url=user.photo_url,
            created_at=user.created_at,
        )


# ===== Media =====


class MediaPayload(StrictCamelModel):
    """媒体元数据（来自 TMDB 的快照）"""

    external_id: int
    kind: Literal["movie", "tv"]
    title: str
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    overview: Optional[str] = None
    release_date: Optional[str] = None
    vote_average: Optional[float] = None
    episode_count: Optional[int] = None
    runtime: Optional[int] = None

    def to_draft(self) -> MediaDraft:
        return MediaDraft(
            external_id=self.external_id,
            kind=self.kind,
            title=self.title,
            poster_path=self.poster_path,
            backdrop_path=self.backdrop_path,
            overview=self.overview,
            release_date=self.release_date,
            vote_average=self.vote_average,
            episode_count=self.episode_count,
            runtime=self.runtime,
        )


class MediaResponse(CamelModel):
    id: int
    external_id: int
    kind: str
    title: str
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    overview: Optional[str] = None
    release_date: Optional[str] = None
    vote_average: Optional[float] = None
    episode_count: Optional[int] = None
    runtime: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, media: MediaItem) -> "MediaResponse":
        return cls(
            id=media.id,
            external_id=media.external_id,
            kind=media.kind,
            title=media.title,
            poster_path=media.poster_path,
            backdrop_path=media.backdrop_path,
            overview=media.overview,
            release_date=media.release_date,
            vote_average=media.vote_average,
            episode_count=media.episode_count,
            runtime=media.runtime,
            created_at=media.created_at,
        )


# ===== Watchlist / Watched / Favorites =====


class ActivityAddRequest(StrictCamelModel):
    """Either an existing catalog id or a media snapshot to resolve-or-create."""

    media_id: Optional[int] = Field(default=None, gt=0)
    media: Optional[MediaPayload] = None
    rating: Optional[int] = None


class RatingUpdateRequest(StrictCamelModel):
    rating: Optional[int] = None


class ActivityItemResponse(CamelModel):
    id: int
    user_id: str
    media_id: int
    rating: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, item: ActivityItem) -> "ActivityItemResponse":
        return cls(
            id=item.id,
            user_id=item.user_id,
            media_id=item.media_id,
            rating=item.rating,
            created_at=item.created_at,
        )


class ActivityEntryResponse(ActivityItemResponse):
    media: MediaResponse

    @classmethod
    def from_entry(cls, entry: ActivityEntry) -> "ActivityEntryResponse":
        item = entry.item
        return cls(
            id=item.id,
            user_id=item.user_id,
            media_id=item.media_id,
            rating=item.rating,
            created_at=item.created_at,
            media=MediaResponse.from_domain(entry.media),
        )


class ExistsResponse(CamelModel):
    exists: bool


# ===== Lists =====


class ListCreateRequest(StrictCamelModel):
    name: str
    description: Optional[str] = None
    is_public: bool = False


class ListUpdateRequest(StrictCamelModel):
    """只更新请求中出现的字段"""

    name: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = None


class ListItemAddRequest(StrictCamelModel):
    media_id: Optional[int] = Field(default=None, gt=0)
    media: Optional[MediaPayload] = None
    status: ListItemStatus = "watched"
    seasons_watched: Optional[int] = None


class ListItemUpdateRequest(StrictCamelModel):
    status: Optional[ListItemStatus] = None
    seasons_watched: Optional[int] = None


class UserListResponse(CamelModel):
    id: int
    user_id: str
    name: str
    description: Optional[str] = None
    is_public: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, user_list: UserList) -> "UserListResponse":
        return cls(
            id=user_list.id,
            user_id=user_list.user_id,
            name=user_list.name,
            description=user_list.description,
            is_public=user_list.is_public,
            created_at=user_list.created_at,
            updated_at=user_list.updated_at,
        )


class ListItemResponse(CamelModel):
    id: int
    list_id: int
    media_id: int
    status: str
    seasons_watched: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, item: ListItem) -> "ListItemResponse":
        return cls(
            id=item.id,
            list_id=item.list_id,
            media_id=item.media_id,
            status=item.status,
            seasons_watched=item.seasons_watched,
            created_at=item.created_at,
        )


class ListItemViewResponse(ListItemResponse):
    media: MediaResponse
    user_rating: Optional[int] = None

    @classmethod
    def from_view(cls, view: ListItemView) -> "ListItemViewResponse":
        item = view.item
        return cls(
            id=item.id,
            list_id=item.list_id,
            media_id=item.media_id,
            status=item.status,
            seasons_watched=item.seasons_watched,
            created_at=item.created_at,
            media=MediaResponse.from_domain(view.media),
            user_rating=view.viewer_rating,
        )


class ListWithItemsResponse(UserListResponse):
    items: List[ListItemViewResponse] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ListWithItems) -> "ListWithItemsResponse":
        base = UserListResponse.from_domain(result.list)
        return cls(
            **base.model_dump(),
            items=[ListItemViewResponse.from_view(v) for v in result.items],
        )


class ListMembershipResponse(CamelModel):
    list_ids: List[int]


# ===== Stats / Activity =====


class UserStatsResponse(CamelModel):
    """用户观影统计"""

    movies_watched: int
    tv_shows_watched: int
    average_rating: float
    total_watchtime: float

    @classmethod
    def from_domain(cls, stats: UserStats) -> "UserStatsResponse":
        return cls(
            movies_watched=stats.movies_watched,
            tv_shows_watched=stats.tv_shows_watched,
            average_rating=stats.average_rating,
            total_watchtime=stats.total_watchtime_hours,
        )


class ActivityEventResponse(CamelModel):
    type: str
    media: MediaResponse
    timestamp: datetime
    rating: Optional[int] = None
    list_id: Optional[int] = None
    list_name: Optional[str] = None

    @classmethod
    def from_domain(cls, event: ActivityEvent) -> "ActivityEventResponse":
        return cls(
            type=event.kind,
            media=MediaResponse.from_domain(event.media),
            timestamp=event.occurred_at,
            rating=event.rating,
            list_id=event.list_id,
            list_name=event.list_name,
        )


class ErrorResponse(BaseModel):
    """错误响应模型"""

    detail: str
