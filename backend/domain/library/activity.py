from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from domain.library.errors import ValidationError
from domain.library.media_item import MediaItem

ACTIVITY_WATCHLIST = "watchlist"
ACTIVITY_WATCHED = "watched"
ACTIVITY_FAVORITES = "favorites"
ACTIVITY_KINDS = (ACTIVITY_WATCHLIST, ACTIVITY_WATCHED, ACTIVITY_FAVORITES)

RATING_MIN = 0
RATING_MAX = 10


def validate_rating(rating: Any) -> Optional[int]:
    """Check a 0..10 integer rating (None means unrated)."""
    if rating is None:
        return None
    # bool is an int subclass; a checkbox value is never a rating.
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError(f"rating must be an integer, got {rating!r}")
    if rating < RATING_MIN or rating > RATING_MAX:
        raise ValidationError(f"rating must be between {RATING_MIN} and {RATING_MAX}, got {rating}")
    return rating


@dataclass(frozen=True)
class ActivityItem:
    """Membership of a media item in one of a user's activity stores."""

    id: int
    user_id: str
    media_id: int
    created_at: Optional[datetime] = None
    # Only set for the watched store.
    rating: Optional[int] = None


@dataclass(frozen=True)
class ActivityEntry:
    item: ActivityItem
    media: MediaItem


EVENT_WATCHED = "watched"
EVENT_FAVORITED = "favorited"
EVENT_ADDED_TO_LIST = "added_to_list"


@dataclass(frozen=True)
class ActivityEvent:
    """One row of the recent-activity feed."""

    kind: str
    media: MediaItem
    occurred_at: datetime
    rating: Optional[int] = None
    list_id: Optional[int] = None
    list_name: Optional[str] = None
