from __future__ import annotations

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
    media_from_record,
    validate_seasons_watched,
    validate_status,
)
from infrastructure.persistence.mongo.library_db import MongoLibraryDatabase, doc_to_row
from infrastructure.persistence.postgres.list_store import (
    check_new_list,
    item_from_row,
    list_from_row,
)

_MEDIA_LOOKUP = {
    "$lookup": {
        "from": "media_items",
        "localField": "media_id",
        "foreignField": "_id",
        "as": "media",
    }
}


def _viewer_rating_lookup(viewer_user_id: str) -> Dict[str, Any]:
    # Keyed on (viewer, media): the rating is global to the user, not per list.
    return {
        "$lookup": {
            "from": "watched_items",
            "let": {"media_id": "$media_id"},
            "pipeline": [
                {
                    "$match": {
                        "$expr": {
                            "$and": [
                                {"$eq": ["$media_id", "$$media_id"]},
                                {"$eq": ["$user_id", str(viewer_user_id)]},
                            ]
                        }
                    }
                },
                {"$project": {"rating": 1}},
            ],
            "as": "viewer_watched",
        }
    }


class MongoListStore(ListStorePort):
    """MongoDB-backed lists and list items (motor)."""

    def __init__(self, *, db: MongoLibraryDatabase) -> None:
        self._db = db

    async def lists_by_user(self, user_id: str) -> List[UserList]:
        async with self._db.collections("list lists") as db:
            cursor = db.lists.find({"user_id": str(user_id)}).sort([("created_at", -1), ("_id", -1)])
            docs = await cursor.to_list(length=None)
        return [list_from_row(doc_to_row(d)) for d in docs]

    async def get_list(self, list_id: int) -> Optional[UserList]:
        async with self._db.collections("get list") as db:
            doc = await db.lists.find_one({"_id": int(list_id)})
        return list_from_row(doc_to_row(doc)) if doc else None

    async def get_list_with_items(
        self,
        list_id: int,
        *,
        viewer_user_id: Optional[str] = None,
    ) -> Optional[ListWithItems]:
        pipeline: List[Dict[str, Any]] = [
            {"$match": {"list_id": int(list_id)}},
            {"$sort": {"created_at": 1, "_id": 1}},
            _MEDIA_LOOKUP,
            {"$unwind": "$media"},
        ]
        if viewer_user_id is not None:
            pipeline.append(_viewer_rating_lookup(viewer_user_id))
        async with self._db.collections("get list with items") as db:
            list_doc = await db.lists.find_one({"_id": int(list_id)})
            if not list_doc:
                return None
            docs = await db.list_items.aggregate(pipeline).to_list(length=None)
        views = []
        for doc in docs:
            media = doc.pop("media")
            watched = doc.pop("viewer_watched", None) or []
            views.append(
                ListItemView(
                    item=item_from_row(doc_to_row(doc)),
                    media=media_from_record(doc_to_row(media)),
                    viewer_rating=watched[0].get("rating") if watched else None,
                )
            )
        return ListWithItems(list=list_from_row(doc_to_row(list_doc)), items=tuple(views))

    async def create_list(
        self,
        user_id: str,
        name: str,
        *,
        description: Optional[str] = None,
        is_public: bool = False,
    ) -> UserList:
        name, description, is_public = check_new_list(name, description, is_public)
        now = datetime.now(timezone.utc)
        async with self._db.collections("create list") as db:
            doc = {
                "_id": await self._db.next_id(db, "lists"),
                "user_id": str(user_id),
                "name": name,
                "description": description,
                "is_public": is_public,
                "created_at": now,
                "updated_at": now,
            }
            await db.lists.insert_one(doc)
        return list_from_row(doc_to_row(doc))

    async def update_list(self, list_id: int, patch: ListPatch) -> Optional[UserList]:
        from pymongo import ReturnDocument

        changes = patch.validated().changes()
        if not changes:
            return await self.get_list(list_id)
        async with self._db.collections("update list") as db:
            doc = await db.lists.find_one_and_update(
                {"_id": int(list_id)},
                {"$set": {**changes, "updated_at": datetime.now(timezone.utc)}},
                return_document=ReturnDocument.AFTER,
            )
        return list_from_row(doc_to_row(doc)) if doc else None

    async def delete_list(self, list_id: int) -> None:
        async with self._db.transaction("delete list") as (db, session):
            await db.list_items.delete_many({"list_id": int(list_id)}, session=session)
            await db.lists.delete_one({"_id": int(list_id)}, session=session)

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
            async with self._db.collections("add list item") as db:
                if await db.lists.count_documents({"_id": int(list_id)}, limit=1) == 0:
                    raise NotFoundError(f"list {list_id} not found")
                if await db.media_items.count_documents({"_id": int(media_id)}, limit=1) == 0:
                    raise NotFoundError(f"media {media_id} not found")
                doc = {
                    "_id": await self._db.next_id(db, "list_items"),
                    "list_id": int(list_id),
                    "media_id": int(media_id),
                    "status": status,
                    "seasons_watched": seasons_watched,
                    "created_at": datetime.now(timezone.utc),
                }
                await db.list_items.insert_one(doc)
        except ConflictError as exc:
            raise ConflictError("item already exists in this list") from exc
        return item_from_row(doc_to_row(doc))

    async def update_item(self, list_item_id: int, patch: ListItemPatch) -> Optional[ListItem]:
        from pymongo import ReturnDocument

        changes = patch.validated().changes()
        async with self._db.collections("update list item") as db:
            if not changes:
                doc = await db.list_items.find_one({"_id": int(list_item_id)})
            else:
                doc = await db.list_items.find_one_and_update(
                    {"_id": int(list_item_id)},
                    {"$set": changes},
                    return_document=ReturnDocument.AFTER,
                )
        return item_from_row(doc_to_row(doc)) if doc else None

    async def remove_item(self, list_id: int, media_id: int) -> None:
        async with self._db.collections("remove list item") as db:
            await db.list_items.delete_many({"list_id": int(list_id), "media_id": int(media_id)})

    async def lists_containing(self, user_id: str, media_id: int) -> List[int]:
        async with self._db.collections("lists containing media") as db:
            owned = await db.lists.distinct("_id", {"user_id": str(user_id)})
            if not owned:
                return []
            found = await db.list_items.distinct(
                "list_id",
                {"media_id": int(media_id), "list_id": {"$in": owned}},
            )
        return sorted(int(x) for x in found)

    async def recent_items_by_user(self, user_id: str, *, limit: int) -> List[tuple[ListItemView, UserList]]:
        async with self._db.collections("recent list items") as db:
            list_docs = await db.lists.find({"user_id": str(user_id)}).to_list(length=None)
            if not list_docs:
                return []
            lists = {d["_id"]: list_from_row(doc_to_row(d)) for d in list_docs}
            docs = await db.list_items.aggregate(
                [
                    {"$match": {"list_id": {"$in": list(lists)}}},
                    {"$sort": {"created_at": -1, "_id": -1}},
                    {"$limit": int(limit)},
                    _MEDIA_LOOKUP,
                    {"$unwind": "$media"},
                ]
            ).to_list(length=None)
        out: List[tuple[ListItemView, UserList]] = []
        for doc in docs:
            media = doc.pop("media")
            view = ListItemView(item=item_from_row(doc_to_row(doc)), media=media_from_record(doc_to_row(media)))
            out.append((view, lists[doc["list_id"]]))
        return out
