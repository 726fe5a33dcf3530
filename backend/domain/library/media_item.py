from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from domain.library.errors import ValidationError

MEDIA_KIND_MOVIE = "movie"
MEDIA_KIND_TV = "tv"
MEDIA_KINDS = frozenset({MEDIA_KIND_MOVIE, MEDIA_KIND_TV})


def validate_media_kind(kind: str) -> str:
    value = str(kind or "").strip().lower()
    if value not in MEDIA_KINDS:
        raise ValidationError(f"invalid media kind: {kind!r} (expected movie or tv)")
    return value


def _optional_number(draft: Any, name: str, cast: Any) -> Any:
    value = getattr(draft, name)
    if value is None:
        return None
    try:
        return cast(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{name} must be numeric, got {value!r}") from exc


@dataclass(frozen=True)
class MediaItem:
    """A cached catalog entry (movie or TV show) keyed by (external_id, kind)."""

    id: int
    external_id: int
    kind: str
    title: str
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    overview: Optional[str] = None
    release_date: Optional[str] = None
    vote_average: Optional[float] = None
    # TV: number of episodes; movies leave this empty.
    episode_count: Optional[int] = None
    # Minutes (per episode for TV).
    runtime: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class MediaDraft:
    """Fields accepted when creating a catalog entry."""

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

    def validated(self) -> "MediaDraft":
        """Return a normalized copy, raising ValidationError on bad input."""
        try:
            external_id = int(self.external_id)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"external_id must be an integer, got {self.external_id!r}") from exc
        if external_id <= 0:
            raise ValidationError("external_id must be positive")
        title = (self.title or "").strip()
        if not title:
            raise ValidationError("title is required")
        counts = {name: _optional_number(self, name, int) for name in ("episode_count", "runtime")}
        for name, value in counts.items():
            if value is not None and value < 0:
                raise ValidationError(f"{name} must not be negative")
        return MediaDraft(
            external_id=external_id,
            kind=validate_media_kind(self.kind),
            title=title,
            poster_path=self.poster_path,
            backdrop_path=self.backdrop_path,
            overview=self.overview,
            release_date=self.release_date,
            vote_average=_optional_number(self, "vote_average", float),
            episode_count=counts["episode_count"],
            runtime=counts["runtime"],
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "external_id": self.external_id,
            "kind": self.kind,
            "title": self.title,
            "poster_path": self.poster_path,
            "backdrop_path": self.backdrop_path,
            "overview": self.overview,
            "release_date": self.release_date,
            "vote_average": self.vote_average,
            "episode_count": self.episode_count,
            "runtime": self.runtime,
        }


def media_from_record(row: Mapping[str, Any]) -> MediaItem:
    """Build a MediaItem from a DB row / document using persisted column names."""
    vote = row.get("vote_average")
    return MediaItem(
        id=int(row["id"]),
        external_id=int(row["external_id"]),
        kind=str(row["kind"]),
        title=str(row.get("title") or ""),
        poster_path=row.get("poster_path"),
        backdrop_path=row.get("backdrop_path"),
        overview=row.get("overview"),
        release_date=row.get("release_date"),
        vote_average=float(vote) if vote is not None else None,
        episode_count=row.get("episode_count"),
        runtime=row.get("runtime"),
        created_at=row.get("created_at"),
    )
