from __future__ import annotations

from typing import Optional, Protocol

from domain.library import MediaDraft, MediaItem


class MediaStorePort(Protocol):
    async def get_media(self, media_id: int) -> Optional[MediaItem]:
        ...

    async def get_media_by_external_id(self, external_id: int, kind: str) -> Optional[MediaItem]:
        ...

    async def create_media(self, draft: MediaDraft) -> MediaItem:
        """Insert a catalog row; raises ConflictError if (external_id, kind) exists."""
        ...
