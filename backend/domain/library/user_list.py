from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from domain.library.errors import ValidationError
from domain.library.media_item import MediaItem

LIST_ITEM_STATUSES = ("watched", "watchlist", "watching", "on hold", "dropped")
DEFAULT_LIST_ITEM_STATUS = "watched"


def validate_list_name(name: Any) -> str:
    value = str(name or "").strip()
    if not value:
        raise ValidationError("list name is required")
    return value


def validate_status(status: Any) -> str:
    value = str(status or "").strip().lower()
    if value not in LIST_ITEM_STATUSES:
        raise ValidationError(
            f"invalid status: {status!r} (expected one of {', '.join(LIST_ITEM_STATUSES)})"
        )
    return value


def validate_seasons_watched(seasons: Any) -> Optional[int]:
    if seasons is None:
        return None
    if isinstance(seasons, bool) or not isinstance(seasons, int):
        raise ValidationError(f"seasons_watched must be an integer, got {seasons!r}")
    if seasons < 0:
        raise ValidationError("seasons_watched must not be negative")
    return seasons


@dataclass(frozen=True)
class UserList:
    id: int
    user_id: str
    name: str
    description: Optional[str] = None
    is_public: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class ListItem:
    id: int
    list_id: int
    media_id: int
    # watched | watchlist | watching | on hold | dropped
    status: str = DEFAULT_LIST_ITEM_STATUS
    seasons_watched: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ListItemView:
    """A list item joined with its media and the viewer's personal rating."""

    item: ListItem
    media: MediaItem
    viewer_rating: Optional[int] = None


@dataclass(frozen=True)
class ListWithItems:
    list: UserList
    items: tuple[ListItemView, ...] = field(default_factory=tuple)


_UNSET: Any = object()


def _reject_unknown(payload: Mapping[str, Any], allowed: frozenset[str], what: str) -> None:
    unknown = sorted(set(payload) - allowed)
    if unknown:
        raise ValidationError(f"unknown {what} fields: {', '.join(unknown)}")


@dataclass(frozen=True)
class ListPatch:
    """Partial update of a list; fields left unset keep their stored value."""

    name: Any = _UNSET
    description: Any = _UNSET
    is_public: Any = _UNSET

    FIELDS = frozenset({"name", "description", "is_public"})

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "ListPatch":
        _reject_unknown(payload, cls.FIELDS, "list")
        return cls(**dict(payload)).validated()

    def validated(self) -> "ListPatch":
        name = self.name
        if name is not _UNSET:
            name = validate_list_name(name)
        description = self.description
        if description is not _UNSET and description is not None:
            description = str(description)
        is_public = self.is_public
        if is_public is not _UNSET and not isinstance(is_public, bool):
            raise ValidationError(f"is_public must be a boolean, got {is_public!r}")
        return ListPatch(name=name, description=description, is_public=is_public)

    def changes(self) -> dict[str, Any]:
        return {
            key: value
            for key, value in (
                ("name", self.name),
                ("description", self.description),
                ("is_public", self.is_public),
            )
            if value is not _UNSET
        }


@dataclass(frozen=True)
class ListItemPatch:
    """Partial update of a list item (status / seasons watched only)."""

    status: Any = _UNSET
    seasons_watched: Any = _UNSET

    FIELDS = frozenset({"status", "seasons_watched"})

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "ListItemPatch":
        _reject_unknown(payload, cls.FIELDS, "list item")
        return cls(**dict(payload)).validated()

    def validated(self) -> "ListItemPatch":
        status = self.status
        if status is not _UNSET:
            status = validate_status(status)
        seasons = self.seasons_watched
        if seasons is not _UNSET:
            seasons = validate_seasons_watched(seasons)
        return ListItemPatch(status=status, seasons_watched=seasons)

    def changes(self) -> dict[str, Any]:
        return {
            key: value
            for key, value in (("status", self.status), ("seasons_watched", self.seasons_watched))
            if value is not _UNSET
        }
