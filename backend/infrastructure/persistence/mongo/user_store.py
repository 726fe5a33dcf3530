from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

from application.ports.user_store_port import UserStorePort
from domain.library import User
from infrastructure.persistence.mongo.library_db import MongoLibraryDatabase, doc_to_row
from infrastructure.persistence.postgres.user_store import (
    check_identity,
    profile_changes,
    user_from_row,
)


class MongoUserStore(UserStorePort):
    def __init__(self, *, db: MongoLibraryDatabase) -> None:
        self._db = db

    async def get_user(self, user_id: str) -> Optional[User]:
        async with self._db.collections("get user") as db:
            doc = await db.users.find_one({"_id": str(user_id)})
        return user_from_row(doc_to_row(doc)) if doc else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        pattern = f"^{re.escape(str(email or '').strip())}$"
        async with self._db.collections("get user by email") as db:
            doc = await db.users.find_one({"email": {"$regex": pattern, "$options": "i"}})
        return user_from_row(doc_to_row(doc)) if doc else None

    async def sync_user(self, user_id: str, email: str, *, display_name: Optional[str] = None) -> User:
        uid, mail = check_identity(user_id, email)
        async with self._db.collections("sync user") as db:
            await db.users.update_one(
                {"_id": uid},
                {
                    "$setOnInsert": {
                        "email": mail,
                        "display_name": display_name,
                        "photo_url": None,
                        "created_at": datetime.now(timezone.utc),
                    }
                },
                upsert=True,
            )
            doc = await db.users.find_one({"_id": uid})
        if not doc:
            raise RuntimeError("failed to sync user")
        return user_from_row(doc_to_row(doc))

    async def update_profile(
        self,
        user_id: str,
        *,
        display_name: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> Optional[User]:
        from pymongo import ReturnDocument

        changes = profile_changes(display_name, photo_url)
        if not changes:
            return await self.get_user(user_id)
        async with self._db.collections("update profile") as db:
            doc = await db.users.find_one_and_update(
                {"_id": str(user_id)},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        return user_from_row(doc_to_row(doc)) if doc else None
