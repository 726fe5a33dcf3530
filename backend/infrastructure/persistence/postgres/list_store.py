from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from application.ports.list_store_port import ListStorePort
from domain.library import (
    DEFAULT_LIST_ITEM_STATUS,
    ConflictError,
    ListItem,
    ListItemPatch,
    ListItemView,
    ListPatch,
    ListWithItems,
    NotFoundError,
    UserList,
    ValidationError,
    media_from_record,
    validate_list_name,
    validate_seasons_watched,
    validate_status,
)
from infrastructure.persistence.postgres.in_memory_tables import InMemoryTables
from infrastructure.persistence.postgres.library_db import PostgresLibraryDatabase, row_to_dict
from infrastructure.persistence.postgres.media_store import MEDIA_JOIN_COLUMNS, media_from_joined_row

logger = logging.getLogger(__name__)

_LIST_COLUMNS = "id, user_id, name, description, is_public, created_at, updated_at"
_ITEM_COLUMNS = "id, list_id, media_id, status, seasons_watched, created_at"
_DUPLICATE_ITEM = "item already exists in this list"
_MIN_TS = datetime.min.replace(tzinfo=timezone.utc)


def list_from_row(row: Dict[str, Any]) -> UserList:
    return UserList(
        id=int(row["id"]),
        user_id=str(row["user_id"]),
        name=str(row["name"]),
        description=row.get("description"),
        is_public=bool(row.get("is_public") or False),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def item_from_row(row: Dict[str, Any]) -> ListItem:
    return ListItem(
        id=int(row["id"]),
        list_id=int(row["list_id"]),
        media_id=int(row["media_id"]),
        status=str(row.get("status") or DEFAULT_LIST_ITEM_STATUS),
        seasons_watched=row.get("seasons_watched"),
        created_at=row.get("created_at"),
    )


def check_new_list(name: Any, description: Any, is_public: Any) -> tuple[str, Optional[str], bool]:
    name = validate_list_name(name)
    if not isinstance(is_public, bool):
        raise ValidationError(f"is_public must be a boolean, got {is_public!r}")
    return name, (str(description) if description is not None else None), is_public


class InMemoryListStore(ListStorePort):
    """In-memory lists and list items, joined against the shared media/watched tables."""

    def __init__(self, *, tables: InMemoryTables) -> None:
        self._tables = tables

    def _lists(self) -> Dict[Any, Dict[str, Any]]:
        return self._tables.table("lists")

    def _items(self) -> Dict[Any, Dict[str, Any]]:
        return self._tables.table("list_items")

    def _find_item(self, list_id: int, media_id: int) -> Optional[Dict[str, Any]]:
        for row in self._items().values():
            if row["list_id"] == int(list_id) and row["media_id"] == int(media_id):
                return row
        return None

    def _viewer_rating(self, viewer_user_id: Optional[str], media_id: int) -> Optional[int]:
        if viewer_user_id is None:
            return None
        for row in self._tables.table("watched_items").values():
            if row["user_id"] == str(viewer_user_id) and row["media_id"] == media_id:
                return row.get("rating")
        return None

    async def lists_by_user(self, user_id: str) -> List[UserList]:
        rows = [r for r in self._lists().values() if r["user_id"] == str(user_id)]
        rows.sort(key=lambda r: (r.get("created_at") or _MIN_TS, r["id"]), reverse=True)
        return [list_from_row(r) for r in rows]

    async def get_list(self, list_id: int) -> Optional[UserList]:
        row = self._lists().get(int(list_id))
        return list_from_row(row) if row else None

    async def get_list_with_items(
        self,
        list_id: int,
        *,
        viewer_user_id: Optional[str] = None,
    ) -> Optional[ListWithItems]:
        row = self._lists().get(int(list_id))
        if row is None:
            return None
        media_rows = self._tables.table("media_items")
        item_rows = [r for r in self._items().values() if r["list_id"] == int(list_id)]
        item_rows.sort(key=lambda r: (r.get("created_at") or _MIN_TS, r["id"]))
        views: List[ListItemView] = []
        for item in item_rows:
            media = media_rows.get(item["media_id"])
            if media is None:
                continue
            views.append(
                ListItemView(
                    item=item_from_row(item),
                    media=media_from_record(media),
                    viewer_rating=self._viewer_rating(viewer_user_id, item["media_id"]),
                )
            )
        return ListWithItems(list=list_from_row(row), items=tuple(views))

    async def create_list(
        self,
        user_id: str,
        name: str,
        *,
        description: Optional[str] = None,
        is_public: bool = False,
    ) -> UserList:
        name, description, is_public = check_new_list(name, description, is_public)
        list_id = self._tables.next_id("lists")
        now = self._tables.now()
        row = {
            "id": list_id,
            "user_id": str(user_id),
            "name": name,
            "description": description,
            "is_public": is_public,
            "created_at": now,
            "updated_at": now,
        }
        self._lists()[list_id] = row
        return list_from_row(row)

    async def update_list(self, list_id: int, patch: ListPatch) -> Optional[UserList]:
        changes = patch.validated().changes()
        row = self._lists().get(int(list_id))
        if row is None:
            return None
        if changes:
            row.update(changes)
            row["updated_at"] = self._tables.now()
        return list_from_row(row)

    async def delete_list(self, list_id: int) -> None:
        items = self._items()
        for item_id in [k for k, r in items.items() if r["list_id"] == int(list_id)]:
            del items[item_id]
        self._lists().pop(int(list_id), None)

    async def add_item(
        self,
        list_id: int,
        media_id: int,
        *,
        status: str = DEFAULT_LIST_ITEM_STATUS,
        seasons_watched: Optional[int] = None,
    ) -> ListItem:
        status = validate_status(status)
        seasons_watched = validate_seasons_watched(seasons_watched)
        if int(list_id) not in self._lists():
            raise NotFoundError(f"list {list_id} not found")
        if int(media_id) not in self._tables.table("media_items"):
            raise NotFoundError(f"media {media_id} not found")
        if self._find_item(list_id, media_id) is not None:
            raise ConflictError(_DUPLICATE_ITEM)
        item_id = self._tables.next_id("list_items")
        row = {
            "id": item_id,
            "list_id": int(list_id),
            "media_id": int(media_id),
            "status": status,
            "seasons_watched": seasons_watched,
            "created_at": self._tables.now(),
        }
        self._items()[item_id] = row
        return item_from_row(row)

    async def update_item(self, list_item_id: int, patch: ListItemPatch) -> Optional[ListItem]:
        changes = patch.validated().changes()
        row = self._items().get(int(list_item_id))
        if row is None:
            return None
        row.update(changes)
        return item_from_row(row)

    async def remove_item(self, list_id: int, media_id: int) -> None:
        row = self._find_item(list_id, media_id)
        if row is not None:
            del self._items()[row["id"]]

    async def lists_containing(self, user_id: str, media_id: int) -> List[int]:
        owned = {k for k, r in self._lists().items() if r["user_id"] == str(user_id)}
        return sorted(
            {r["list_id"] for r in self._items().values() if r["media_id"] == int(media_id) and r["list_id"] in owned}
        )

    async def recent_items_by_user(self, user_id: str, *, limit: int) -> List[tuple[ListItemView, UserList]]:
        lists = {k: r for k, r in self._lists().items() if r["user_id"] == str(user_id)}
        media_rows = self._tables.table("media_items")
        rows = [r for r in self._items().values() if r["list_id"] in lists and r["media_id"] in media_rows]
        rows.sort(key=lambda r: (r.get("created_at") or _MIN_TS, r["id"]), reverse=True)
        return [
            (
                ListItemView(item=item_from_row(r), media=media_from_record(media_rows[r["media_id"]])),
                list_from_row(lists[r["list_id"]]),
            )
            for r in rows[: int(limit)]
        ]


class PostgresListStore(ListStorePort):
    """Postgres-backed lists and list items (asyncpg)."""

    def __init__(self, *, db: PostgresLibraryDatabase) -> None:
        self._db = db

    async def lists_by_user(self, user_id: str) -> List[UserList]:
        async with self._db.connection("list lists") as conn:
            rows = await conn.fetch(
                f"SELECT {_LIST_COLUMNS} FROM lists WHERE user_id = $1 ORDER BY created_at DESC, id DESC",
                str(user_id),
            )
        return [list_from_row(row_to_dict(r)) for r in rows]

    async def get_list(self, list_id: int) -> Optional[UserList]:
        async with self._db.connection("get list") as conn:
            row = await conn.fetchrow(f"SELECT {_LIST_COLUMNS} FROM lists WHERE id = $1", int(list_id))
        return list_from_row(row_to_dict(row)) if row else None

    async def get_list_with_items(
        self,
        list_id: int,
        *,
        viewer_user_id: Optional[str] = None,
    ) -> Optional[ListWithItems]:
        async with self._db.connection("get list with items") as conn:
            # One snapshot for the list row and its items.
            async with conn.transaction(isolation="repeatable_read", readonly=True):
                list_row = await conn.fetchrow(
                    f"SELECT {_LIST_COLUMNS} FROM lists WHERE id = $1",
                    int(list_id),
                )
                if not list_row:
                    return None
                # The rating join keys on (viewer, media), not on the list item:
                # a user's rating of a title is the same in every list.
                item_rows = await conn.fetch(
                    f"""
                    SELECT
                        li.id, li.list_id, li.media_id, li.status, li.seasons_watched, li.created_at,
                        w.rating AS viewer_rating,
                        {MEDIA_JOIN_COLUMNS}
                    FROM list_items li
                    JOIN media_items m ON m.id = li.media_id
                    LEFT JOIN watched_items w
                        ON w.media_id = li.media_id AND w.user_id = $2::text
                    WHERE li.list_id = $1
                    ORDER BY li.created_at ASC, li.id ASC
                    """,
                    int(list_id),
                    str(viewer_user_id) if viewer_user_id is not None else None,
                )
        views = []
        for r in item_rows:
            row = row_to_dict(r)
            views.append(
                ListItemView(
                    item=item_from_row(row),
                    media=media_from_joined_row(row),
                    viewer_rating=row.get("viewer_rating"),
                )
            )
        return ListWithItems(list=list_from_row(row_to_dict(list_row)), items=tuple(views))

    async def create_list(
        self,
        user_id: str,
        name: str,
        *,
        description: Optional[str] = None,
        is_public: bool = False,
    ) -> UserList:
        name, description, is_public = check_new_list(name, description, is_public)
        async with self._db.connection("create list") as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO lists (user_id, name, description, is_public)
                VALUES ($1, $2, $3, $4)
                RETURNING {_LIST_COLUMNS}
                """,
                str(user_id),
                name,
                description,
                is_public,
            )
        if not row:
            raise RuntimeError("failed to insert list")
        return list_from_row(row_to_dict(row))

    async def update_list(self, list_id: int, patch: ListPatch) -> Optional[UserList]:
        changes = patch.validated().changes()
        if not changes:
            return await self.get_list(list_id)
        # Column names come from ListPatch.FIELDS, never from the caller.
        assignments = [f"{col} = ${idx}" for idx, col in enumerate(changes, start=2)]
        async with self._db.connection("update list") as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE lists
                SET {", ".join(assignments)}, updated_at = NOW()
                WHERE id = $1
                RETURNING {_LIST_COLUMNS}
                """,
                int(list_id),
                *changes.values(),
            )
        return list_from_row(row_to_dict(row)) if row else None

    async def delete_list(self, list_id: int) -> None:
        async with self._db.transaction("delete list") as conn:
            await conn.execute("DELETE FROM list_items WHERE list_id = $1", int(list_id))
            await conn.execute("DELETE FROM lists WHERE id = $1", int(list_id))

    async def add_item(
        self,
        list_id: int,
        media_id: int,
        *,
        status: str = DEFAULT_LIST_ITEM_STATUS,
        seasons_watched: Optional[int] = None,
    ) -> ListItem:
        status = validate_status(status)
        seasons_watched = validate_seasons_watched(seasons_watched)
        try:
            async with self._db.connection("add list item") as conn:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO list_items (list_id, media_id, status, seasons_watched)
                    VALUES ($1, $2, $3, $4)
                    RETURNING {_ITEM_COLUMNS}
                    """,
                    int(list_id),
                    int(media_id),
                    status,
                    seasons_watched,
                )
        except NotFoundError as exc:
            raise NotFoundError(f"list {list_id} or media {media_id} not found") from exc
        except ConflictError as exc:
            raise ConflictError(_DUPLICATE_ITEM) from exc
        if not row:
            raise RuntimeError("failed to insert list item")
        return item_from_row(row_to_dict(row))

    async def update_item(self, list_item_id: int, patch: ListItemPatch) -> Optional[ListItem]:
        changes = patch.validated().changes()
        async with self._db.connection("update list item") as conn:
            if not changes:
                row = await conn.fetchrow(
                    f"SELECT {_ITEM_COLUMNS} FROM list_items WHERE id = $1",
                    int(list_item_id),
                )
            else:
                assignments = [f"{col} = ${idx}" for idx, col in enumerate(changes, start=2)]
                row = await conn.fetchrow(
                    f"""
                    UPDATE list_items
                    SET {", ".join(assignments)}
                    WHERE id = $1
                    RETURNING {_ITEM_COLUMNS}
                    """,
                    int(list_item_id),
                    *changes.values(),
                )
        return item_from_row(row_to_dict(row)) if row else None

    async def remove_item(self, list_id: int, media_id: int) -> None:
        async with self._db.connection("remove list item") as conn:
            await conn.execute(
                "DELETE FROM list_items WHERE list_id = $1 AND media_id = $2",
                int(list_id),
                int(media_id),
            )

    async def lists_containing(self, user_id: str, media_id: int) -> List[int]:
        async with self._db.connection("lists containing media") as conn:
            rows = await conn.fetch(
                """
                SELECT DISTINCT l.id
                FROM lists l
                JOIN list_items li ON li.list_id = l.id
                WHERE l.user_id = $1 AND li.media_id = $2
                ORDER BY l.id
                """,
                str(user_id),
                int(media_id),
            )
        return [int(r["id"]) for r in rows]

    async def recent_items_by_user(self, user_id: str, *, limit: int) -> List[tuple[ListItemView, UserList]]:
        async with self._db.connection("recent list items") as conn:
            rows = await conn.fetch(
                f"""
                SELECT
                    li.id, li.list_id, li.media_id, li.status, li.seasons_watched, li.created_at,
                    l.user_id AS l_user_id, l.name AS l_name, l.description AS l_description,
                    l.is_public AS l_is_public, l.created_at AS l_created_at,
                    l.updated_at AS l_updated_at,
                    {MEDIA_JOIN_COLUMNS}
                FROM list_items li
                JOIN lists l ON l.id = li.list_id
                JOIN media_items m ON m.id = li.media_id
                WHERE l.user_id = $1
                ORDER BY li.created_at DESC, li.id DESC
                LIMIT $2
                """,
                str(user_id),
                int(limit),
            )
        out: List[tuple[ListItemView, UserList]] = []
        for r in rows:
            row = row_to_dict(r)
            user_list = list_from_row(
                {"id": row["list_id"], **{k[2:]: v for k, v in row.items() if k.startswith("l_")}}
            )
            out.append((ListItemView(item=item_from_row(row), media=media_from_joined_row(row)), user_list))
        return out
