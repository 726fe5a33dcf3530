from __future__ import annotations

import asyncio
import heapq
from datetime import datetime, timezone
from typing import Iterable, List

from application.library.storage import LibraryStorage
from domain.library import (
    EVENT_ADDED_TO_LIST,
    EVENT_FAVORITED,
    EVENT_WATCHED,
    ActivityEvent,
    UserStats,
    ValidationError,
    summarize_watched,
)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _sort_key(event: ActivityEvent) -> datetime:
    ts = event.occurred_at
    if ts.tzinfo is None:
        # Stores may hand back naive UTC timestamps.
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def merge_recent(sources: Iterable[Iterable[ActivityEvent]], *, limit: int) -> List[ActivityEvent]:
    """Merge several event streams, newest first, and keep the top `limit`."""
    ordered = [sorted(src, key=_sort_key, reverse=True) for src in sources]
    merged = heapq.merge(*ordered, key=_sort_key, reverse=True)
    out: List[ActivityEvent] = []
    for event in merged:
        if len(out) >= limit:
            break
        out.append(event)
    return out


class StatsService:
    def __init__(self, *, storage: LibraryStorage) -> None:
        self._storage = storage

    async def get_user_stats(self, user_id: str) -> UserStats:
        entries = await self._storage.watched.list_by_user(user_id)
        return summarize_watched((e.media, e.item.rating) for e in entries)

    async def get_recent_activity(self, user_id: str, *, limit: int = 10) -> List[ActivityEvent]:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValidationError(f"limit must be a positive integer, got {limit!r}")

        watched, favorites, list_items = await asyncio.gather(
            self._storage.watched.list_by_user(user_id),
            self._storage.favorites.list_by_user(user_id),
            self._storage.lists.recent_items_by_user(user_id, limit=limit),
        )

        watched_events = [
            ActivityEvent(
                kind=EVENT_WATCHED,
                media=e.media,
                occurred_at=e.item.created_at or _EPOCH,
                rating=e.item.rating,
            )
            for e in watched
        ]
        favorite_events = [
            ActivityEvent(kind=EVENT_FAVORITED, media=e.media, occurred_at=e.item.created_at or _EPOCH)
            for e in favorites
        ]
        list_events = [
            ActivityEvent(
                kind=EVENT_ADDED_TO_LIST,
                media=view.media,
                occurred_at=view.item.created_at or _EPOCH,
                list_id=user_list.id,
                list_name=user_list.name,
            )
            for view, user_list in list_items
        ]
        return merge_recent([watched_events, favorite_events, list_events], limit=limit)
