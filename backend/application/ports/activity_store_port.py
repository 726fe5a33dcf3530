from __future__ import annotations

from typing import List, Optional, Protocol

from domain.library import ActivityEntry, ActivityItem


class ActivityStorePort(Protocol):
    """Shared contract of the watchlist / watched / favorites stores."""

    kind: str

    async def list_by_user(self, user_id: str) -> List[ActivityEntry]:
        """Entries with their media, newest first."""
        ...

    async def get(self, user_id: str, media_id: int) -> Optional[ActivityItem]:
        ...

    async def add(self, user_id: str, media_id: int, *, rating: Optional[int] = None) -> ActivityItem:
        """Raises DuplicateError if the pair is already present."""
        ...

    async def remove(self, user_id: str, media_id: int) -> None:
        ...

    async def exists(self, user_id: str, media_id: int) -> bool:
        ...
