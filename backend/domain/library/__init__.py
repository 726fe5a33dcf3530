from domain.library.activity import (
    ACTIVITY_FAVORITES,
    ACTIVITY_KINDS,
    ACTIVITY_WATCHED,
    ACTIVITY_WATCHLIST,
    EVENT_ADDED_TO_LIST,
    EVENT_FAVORITED,
    EVENT_WATCHED,
    ActivityEntry,
    ActivityEvent,
    ActivityItem,
    validate_rating,
)
from domain.library.errors import (
    ConflictError,
    DependencyError,
    DuplicateError,
    LibraryError,
    NotFoundError,
    ValidationError,
)
from domain.library.media_item import (
    MEDIA_KIND_MOVIE,
    MEDIA_KIND_TV,
    MediaDraft,
    MediaItem,
    media_from_record,
    validate_media_kind,
)
from domain.library.stats import UserStats, estimate_watch_hours, summarize_watched
from domain.library.user import User
from domain.library.user_list import (
    DEFAULT_LIST_ITEM_STATUS,
    LIST_ITEM_STATUSES,
    ListItem,
    ListItemPatch,
    ListItemView,
    ListPatch,
    ListWithItems,
    UserList,
    validate_list_name,
    validate_seasons_watched,
    validate_status,
)

__all__ = [
    "ACTIVITY_FAVORITES",
    "ACTIVITY_KINDS",
    "ACTIVITY_WATCHED",
    "ACTIVITY_WATCHLIST",
    "EVENT_ADDED_TO_LIST",
    "EVENT_FAVORITED",
    "EVENT_WATCHED",
    "ActivityEntry",
    "ActivityEvent",
    "ActivityItem",
    "validate_rating",
    "ConflictError",
    "DependencyError",
    "DuplicateError",
    "LibraryError",
    "NotFoundError",
    "ValidationError",
    "MEDIA_KIND_MOVIE",
    "MEDIA_KIND_TV",
    "MediaDraft",
    "MediaItem",
    "media_from_record",
    "validate_media_kind",
    "UserStats",
    "estimate_watch_hours",
    "summarize_watched",
    "User",
    "DEFAULT_LIST_ITEM_STATUS",
    "LIST_ITEM_STATUSES",
    "ListItem",
    "ListItemPatch",
    "ListItemView",
    "ListPatch",
    "ListWithItems",
    "UserList",
    "validate_list_name",
    "validate_seasons_watched",
    "validate_status",
]
