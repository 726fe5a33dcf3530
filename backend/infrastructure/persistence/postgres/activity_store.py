from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from application.ports.activity_store_port import ActivityStorePort
from domain.library import (
    ACTIVITY_FAVORITES,
    ACTIVITY_WATCHED,
    ACTIVITY_WATCHLIST,
    ActivityEntry,
    ActivityItem,
    ConflictError,
    DuplicateError,
    NotFoundError,
    ValidationError,
    media_from_record,
    validate_rating,
)
from infrastructure.persistence.postgres.in_memory_tables import InMemoryTables
from infrastructure.persistence.postgres.library_db import PostgresLibraryDatabase, row_to_dict
from infrastructure.persistence.postgres.media_store import MEDIA_JOIN_COLUMNS, media_from_joined_row

logger = logging.getLogger(__name__)

ACTIVITY_TABLES: Dict[str, str] = {
    ACTIVITY_WATCHLIST: "watchlist_items",
    ACTIVITY_WATCHED: "watched_items",
    ACTIVITY_FAVORITES: "favorite_items",
}


def activity_table(kind: str) -> str:
    try:
        return ACTIVITY_TABLES[kind]
    except KeyError:
        raise ValidationError(f"unknown activity store: {kind!r}") from None


def check_activity_rating(kind: str, rating: Any) -> Optional[int]:
    """Ratings belong to watched rows only."""
    if kind != ACTIVITY_WATCHED:
        if rating is not None:
            raise ValidationError(f"{kind} entries do not carry a rating")
        return None
    return validate_rating(rating)


def activity_item_from_row(row: Dict[str, Any]) -> ActivityItem:
    return ActivityItem(
        id=int(row["id"]),
        user_id=str(row["user_id"]),
        media_id=int(row["media_id"]),
        created_at=row.get("created_at"),
        rating=row.get("rating"),
    )


class InMemoryActivityStore(ActivityStorePort):
    """In-memory watchlist / watched / favorites store."""

    def __init__(self, *, kind: str, tables: InMemoryTables) -> None:
        self.kind = kind
        self._table_name = activity_table(kind)
        self._tables = tables

    def _rows(self) -> Dict[Any, Dict[str, Any]]:
        return self._tables.table(self._table_name)

    def _find(self, user_id: str, media_id: int) -> Optional[Dict[str, Any]]:
        for row in self._rows().values():
            if row["user_id"] == str(user_id) and row["media_id"] == int(media_id):
                return row
        return None

    async def list_by_user(self, user_id: str) -> List[ActivityEntry]:
        media_rows = self._tables.table("media_items")
        rows = [r for r in self._rows().values() if r["user_id"] == str(user_id)]
        rows.sort(
            key=lambda r: (r.get("created_at") or datetime.min.replace(tzinfo=timezone.utc), r["id"]),
            reverse=True,
        )
        out: List[ActivityEntry] = []
        for row in rows:
            media = media_rows.get(row["media_id"])
            if media is None:
                # Inner join semantics: rows whose media vanished are not listed.
                continue
            out.append(ActivityEntry(item=activity_item_from_row(row), media=media_from_record(media)))
        return out

    async def get(self, user_id: str, media_id: int) -> Optional[ActivityItem]:
        row = self._find(user_id, media_id)
        return activity_item_from_row(row) if row else None

    async def add(self, user_id: str, media_id: int, *, rating: Optional[int] = None) -> ActivityItem:
        rating = check_activity_rating(self.kind, rating)
        if int(media_id) not in self._tables.table("media_items"):
            raise NotFoundError(f"media {media_id} not found")
        if self._find(user_id, media_id) is not None:
            raise DuplicateError(f"media {media_id} is already in {self.kind}")
        item_id = self._tables.next_id(self._table_name)
        row: Dict[str, Any] = {
            "id": item_id,
            "user_id": str(user_id),
            "media_id": int(media_id),
            "created_at": self._tables.now(),
        }
        if self.kind == ACTIVITY_WATCHED:
            row["rating"] = rating
        self._rows()[item_id] = row
        return activity_item_from_row(row)

    async def remove(self, user_id: str, media_id: int) -> None:
        row = self._find(user_id, media_id)
        if row is not None:
            del self._rows()[row["id"]]

    async def exists(self, user_id: str, media_id: int) -> bool:
        return self._find(user_id, media_id) is not None


class PostgresActivityStore(ActivityStorePort):
    """Postgres-backed activity store; one instance per table."""

    def __init__(self, *, kind: str, db: PostgresLibraryDatabase) -> None:
        self.kind = kind
        self._table = activity_table(kind)
        self._db = db
        self._rating_column = "a.rating" if kind == ACTIVITY_WATCHED else "NULL::int AS rating"

    async def list_by_user(self, user_id: str) -> List[ActivityEntry]:
        async with self._db.connection(f"list {self.kind}") as conn:
            rows = await conn.fetch(
                f"""
                SELECT a.id, a.user_id, a.media_id, a.created_at, {self._rating_column}, {MEDIA_JOIN_COLUMNS}
                FROM {self._table} a
                JOIN media_items m ON m.id = a.media_id
                WHERE a.user_id = $1
                ORDER BY a.created_at DESC, a.id DESC
                """,
                str(user_id),
            )
        out: List[ActivityEntry] = []
        for r in rows:
            row = row_to_dict(r)
            out.append(ActivityEntry(item=activity_item_from_row(row), media=media_from_joined_row(row)))
        return out

    async def get(self, user_id: str, media_id: int) -> Optional[ActivityItem]:
        async with self._db.connection(f"get {self.kind}") as conn:
            row = await conn.fetchrow(
                f"""
                SELECT a.id, a.user_id, a.media_id, a.created_at, {self._rating_column}
                FROM {self._table} a
                WHERE a.user_id = $1 AND a.media_id = $2
                """,
                str(user_id),
                int(media_id),
            )
        return activity_item_from_row(row_to_dict(row)) if row else None

    async def add(self, user_id: str, media_id: int, *, rating: Optional[int] = None) -> ActivityItem:
        rating = check_activity_rating(self.kind, rating)
        if self.kind == ACTIVITY_WATCHED:
            sql = f"""
                INSERT INTO {self._table} (user_id, media_id, rating)
                VALUES ($1, $2, $3)
                RETURNING id, user_id, media_id, created_at, rating
            """
            args: tuple[Any, ...] = (str(user_id), int(media_id), rating)
        else:
            sql = f"""
                INSERT INTO {self._table} (user_id, media_id)
                VALUES ($1, $2)
                RETURNING id, user_id, media_id, created_at
            """
            args = (str(user_id), int(media_id))
        try:
            async with self._db.connection(f"add {self.kind}") as conn:
                row = await conn.fetchrow(sql, *args)
        except NotFoundError as exc:
            raise NotFoundError(f"media {media_id} not found") from exc
        except ConflictError as exc:
            raise DuplicateError(f"media {media_id} is already in {self.kind}") from exc
        if not row:
            raise RuntimeError(f"failed to insert into {self._table}")
        return activity_item_from_row(row_to_dict(row))

    async def remove(self, user_id: str, media_id: int) -> None:
        async with self._db.connection(f"remove {self.kind}") as conn:
            await conn.execute(
                f"DELETE FROM {self._table} WHERE user_id = $1 AND media_id = $2",
                str(user_id),
                int(media_id),
            )

    async def exists(self, user_id: str, media_id: int) -> bool:
        async with self._db.connection(f"check {self.kind}") as conn:
            found = await conn.fetchval(
                f"SELECT EXISTS (SELECT 1 FROM {self._table} WHERE user_id = $1 AND media_id = $2)",
                str(user_id),
                int(media_id),
            )
        return bool(found)
