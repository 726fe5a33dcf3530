from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from domain.library.media_item import MEDIA_KIND_MOVIE, MEDIA_KIND_TV, MediaItem

# Fallback estimates (hours) when the catalog has no runtime for an item.
DEFAULT_MOVIE_HOURS = 2.0
DEFAULT_TV_SHOW_HOURS = 1.0


@dataclass(frozen=True)
class UserStats:
    movies_watched: int = 0
    tv_shows_watched: int = 0
    average_rating: float = 0.0
    total_watchtime_hours: float = 0.0


def estimate_watch_hours(media: MediaItem) -> float:
    """Hours spent on one watched item, from stored runtime when available."""
    runtime: Optional[int] = media.runtime if media.runtime and media.runtime > 0 else None
    if media.kind == MEDIA_KIND_TV:
        if runtime is None:
            return DEFAULT_TV_SHOW_HOURS
        episodes = media.episode_count if media.episode_count and media.episode_count > 0 else 1
        return runtime * episodes / 60.0
    if runtime is None:
        return DEFAULT_MOVIE_HOURS
    return runtime / 60.0


def average_rating(ratings: Iterable[Optional[int]]) -> float:
    """Mean of non-null ratings; 0.0 when nothing is rated."""
    rated = [int(r) for r in ratings if r is not None]
    if not rated:
        return 0.0
    return round(sum(rated) / len(rated), 2)


def summarize_watched(entries: Iterable[tuple[MediaItem, Optional[int]]]) -> UserStats:
    movies = tv = 0
    hours = 0.0
    ratings: list[Optional[int]] = []
    for media, rating in entries:
        if media.kind == MEDIA_KIND_MOVIE:
            movies += 1
        elif media.kind == MEDIA_KIND_TV:
            tv += 1
        hours += estimate_watch_hours(media)
        ratings.append(rating)
    return UserStats(
        movies_watched=movies,
        tv_shows_watched=tv,
        average_rating=average_rating(ratings),
        total_watchtime_hours=round(hours, 1),
    )
