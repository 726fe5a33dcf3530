from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from application.ports.activity_store_port import ActivityStorePort
from domain.library import (
    ACTIVITY_WATCHED,
    ActivityEntry,
    ActivityItem,
    ConflictError,
    DuplicateError,
    NotFoundError,
    media_from_record,
)
from infrastructure.persistence.mongo.library_db import MongoLibraryDatabase, doc_to_row
from infrastructure.persistence.postgres.activity_store import (
    activity_item_from_row,
    activity_table,
    check_activity_rating,
)


class MongoActivityStore(ActivityStorePort):
    """MongoDB-backed watchlist / watched / favorites collection."""

    def __init__(self, *, kind: str, db: MongoLibraryDatabase) -> None:
        self.kind = kind
        self._collection = activity_table(kind)
        self._db = db

    async def list_by_user(self, user_id: str) -> List[ActivityEntry]:
        async with self._db.collections(f"list {self.kind}") as db:
            cursor = db[self._collection].aggregate(
                [
                    {"$match": {"user_id": str(user_id)}},
                    {"$sort": {"created_at": -1, "_id": -1}},
                    {
                        "$lookup": {
                            "from": "media_items",
                            "localField": "media_id",
                            "foreignField": "_id",
                            "as": "media",
                        }
                    },
                    {"$unwind": "$media"},
                ]
            )
            docs = await cursor.to_list(length=None)
        out: List[ActivityEntry] = []
        for doc in docs:
            media = doc.pop("media")
            out.append(
                ActivityEntry(
                    item=activity_item_from_row(doc_to_row(doc)),
                    media=media_from_record(doc_to_row(media)),
                )
            )
        return out

    async def get(self, user_id: str, media_id: int) -> Optional[ActivityItem]:
        async with self._db.collections(f"get {self.kind}") as db:
            doc = await db[self._collection].find_one({"user_id": str(user_id), "media_id": int(media_id)})
        return activity_item_from_row(doc_to_row(doc)) if doc else None

    async def add(self, user_id: str, media_id: int, *, rating: Optional[int] = None) -> ActivityItem:
        rating = check_activity_rating(self.kind, rating)
        try:
            async with self._db.collections(f"add {self.kind}") as db:
                # No foreign keys in MongoDB; check the reference explicitly.
                if await db.media_items.count_documents({"_id": int(media_id)}, limit=1) == 0:
                    raise NotFoundError(f"media {media_id} not found")
                doc: Dict[str, Any] = {
                    "_id": await self._db.next_id(db, self._collection),
                    "user_id": str(user_id),
                    "media_id": int(media_id),
                    "created_at": datetime.now(timezone.utc),
                }
                if self.kind == ACTIVITY_WATCHED:
                    doc["rating"] = rating
                await db[self._collection].insert_one(doc)
        except ConflictError as exc:
            raise DuplicateError(f"media {media_id} is already in {self.kind}") from exc
        return activity_item_from_row(doc_to_row(doc))

    async def remove(self, user_id: str, media_id: int) -> None:
        async with self._db.collections(f"remove {self.kind}") as db:
            await db[self._collection].delete_many({"user_id": str(user_id), "media_id": int(media_id)})

    async def exists(self, user_id: str, media_id: int) -> bool:
        async with self._db.collections(f"check {self.kind}") as db:
            count = await db[self._collection].count_documents(
                {"user_id": str(user_id), "media_id": int(media_id)},
                limit=1,
            )
        return count > 0
