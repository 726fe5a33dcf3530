from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from application.ports.activity_store_port import ActivityStorePort
from application.ports.list_store_port import ListStorePort
from application.ports.media_store_port import MediaStorePort
from application.ports.user_store_port import UserStorePort
from domain.library import ACTIVITY_FAVORITES, ACTIVITY_WATCHED, ACTIVITY_WATCHLIST, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class LibraryStorage:
    """The storage boundary the HTTP layer talks to.

    One instance per process, built by the backend factory; every backend
    (postgres / mongo / memory) fills the same slots.
    """

    backend: str
    users: UserStorePort
    media: MediaStorePort
    watchlist: ActivityStorePort
    watched: ActivityStorePort
    favorites: ActivityStorePort
    lists: ListStorePort
    closer: Optional[Callable[[], Awaitable[None]]] = None

    def activity(self, kind: str) -> ActivityStorePort:
        stores: dict[str, Any] = {
            ACTIVITY_WATCHLIST: self.watchlist,
            ACTIVITY_WATCHED: self.watched,
            ACTIVITY_FAVORITES: self.favorites,
        }
        store = stores.get(kind)
        if store is None:
            raise ValidationError(f"unknown activity store: {kind!r}")
        return store

    async def close(self) -> None:
        if self.closer is not None:
            await self.closer()
            logger.info("library storage closed (backend=%s)", self.backend)
