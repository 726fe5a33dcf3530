from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterator


class InMemoryTables:
    """Row storage shared by the in-memory library stores.

    Each LibraryStorage built for the memory backend owns exactly one instance;
    nothing here is module-level state.
    """

    TABLES = (
        "users",
        "media_items",
        "watchlist_items",
        "watched_items",
        "favorite_items",
        "lists",
        "list_items",
    )

    def __init__(self) -> None:
        self._rows: Dict[str, Dict[Any, Dict[str, Any]]] = {name: {} for name in self.TABLES}
        self._ids: Dict[str, Iterator[int]] = {name: itertools.count(1) for name in self.TABLES}
        self._clock_last: datetime | None = None

    def table(self, name: str) -> Dict[Any, Dict[str, Any]]:
        return self._rows[name]

    def next_id(self, name: str) -> int:
        return next(self._ids[name])

    def now(self) -> datetime:
        # Strictly increasing so insertion order and created_at never disagree.
        ts = datetime.now(timezone.utc)
        if self._clock_last is not None and ts <= self._clock_last:
            ts = self._clock_last + timedelta(microseconds=1)
        self._clock_last = ts
        return ts

    async def close(self) -> None:
        return None
