from __future__ import annotations

import logging
from typing import Optional

from application.library.storage import LibraryStorage
from domain.library import (
    ActivityItem,
    ConflictError,
    DEFAULT_LIST_ITEM_STATUS,
    ListItem,
    MediaDraft,
    MediaItem,
    NotFoundError,
    validate_rating,
)

logger = logging.getLogger(__name__)


class LibraryService:
    """Multi-step workflows over the stores (resolve-or-create, re-rating)."""

    def __init__(self, *, storage: LibraryStorage) -> None:
        self._storage = storage

    async def resolve_media(self, draft: MediaDraft) -> MediaItem:
        """Return the catalog row for (external_id, kind), creating it on a miss.

        A concurrent insert of the same key surfaces as ConflictError from the
        store; the row now exists, so re-query and return it.
        """
        draft = draft.validated()
        media_store = self._storage.media
        existing = await media_store.get_media_by_external_id(draft.external_id, draft.kind)
        if existing is not None:
            return existing
        try:
            return await media_store.create_media(draft)
        except ConflictError:
            logger.debug(
                "media %s/%s created concurrently; re-reading", draft.kind, draft.external_id
            )
            existing = await media_store.get_media_by_external_id(draft.external_id, draft.kind)
            if existing is None:
                raise
            return existing

    async def mark_watched(
        self,
        user_id: str,
        media_id: int,
        *,
        rating: Optional[int] = None,
    ) -> ActivityItem:
        """Add to watched, replacing an existing row so the rating can change."""
        rating = validate_rating(rating)
        watched = self._storage.watched
        if await watched.exists(user_id, media_id):
            await watched.remove(user_id, media_id)
        return await watched.add(user_id, media_id, rating=rating)

    async def add_to_list(
        self,
        list_id: int,
        draft: MediaDraft,
        *,
        status: str = DEFAULT_LIST_ITEM_STATUS,
        seasons_watched: Optional[int] = None,
    ) -> ListItem:
        if await self._storage.lists.get_list(list_id) is None:
            raise NotFoundError(f"list {list_id} not found")
        media = await self.resolve_media(draft)
        return await self._storage.lists.add_item(
            list_id,
            media.id,
            status=status,
            seasons_watched=seasons_watched,
        )
