from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from domain.library import ConflictError, DependencyError, LibraryError

logger = logging.getLogger(__name__)

# Server error code for "Transaction numbers are only allowed on a replica set member or mongos".
_ILLEGAL_OPERATION = 20

COLLECTIONS = (
    "users",
    "media_items",
    "watchlist_items",
    "watched_items",
    "favorite_items",
    "lists",
    "list_items",
)


def translate_mongo_error(exc: BaseException, *, action: str) -> Optional[LibraryError]:
    """Map a pymongo failure to the library error taxonomy (None if unmapped)."""
    from pymongo.errors import ConnectionFailure, DuplicateKeyError, OperationFailure

    if isinstance(exc, LibraryError):
        return exc
    if isinstance(exc, DuplicateKeyError):
        return ConflictError(f"{action}: duplicate key")
    # ServerSelectionTimeoutError / AutoReconnect are ConnectionFailure subclasses.
    if isinstance(exc, (ConnectionFailure, OSError, asyncio.TimeoutError)):
        return DependencyError(f"{action}: mongodb unavailable ({exc})")
    if isinstance(exc, OperationFailure) and exc.code == _ILLEGAL_OPERATION:
        return DependencyError(f"{action}: mongodb deployment does not support transactions (replica set required)")
    return None


def doc_to_row(doc: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Expose a document under the relational column names (`_id` -> `id`)."""
    if not doc:
        return {}
    row = {k: v for k, v in doc.items() if k != "_id"}
    row["id"] = doc["_id"]
    return row


class MongoLibraryDatabase:
    """Shared motor client for the document-backed library stores.

    Documents use integer `_id`s allocated from a `counters` collection, so ids
    look the same as on the relational backend.
    """

    def __init__(
        self,
        *,
        uri: str,
        database: str = "cinelog",
        server_selection_timeout_ms: int = 5000,
    ) -> None:
        self._uri = uri
        self._database_name = database
        self._timeout_ms = server_selection_timeout_ms
        self._client = None
        self._db = None
        self._init_lock = asyncio.Lock()

    async def _get_db(self):
        if self._db is not None:
            return self._db
        async with self._init_lock:
            if self._db is not None:
                return self._db
            from motor.motor_asyncio import AsyncIOMotorClient

            self._client = AsyncIOMotorClient(
                self._uri,
                tz_aware=True,
                serverSelectionTimeoutMS=self._timeout_ms,
            )
            db = self._client[self._database_name]
            await self._ensure_indexes(db)
            self._db = db
            logger.info("MongoDB library client initialized (db=%s)", self._database_name)
            return self._db

    @staticmethod
    async def _ensure_indexes(db) -> None:
        await db.users.create_index("email")
        await db.media_items.create_index([("external_id", 1), ("kind", 1)], unique=True)
        for name in ("watchlist_items", "watched_items", "favorite_items"):
            await db[name].create_index([("user_id", 1), ("media_id", 1)], unique=True)
            await db[name].create_index([("user_id", 1), ("created_at", -1)])
        await db.lists.create_index("user_id")
        await db.list_items.create_index([("list_id", 1), ("media_id", 1)], unique=True)
        await db.list_items.create_index([("list_id", 1), ("created_at", 1)])

    @asynccontextmanager
    async def collections(self, action: str) -> AsyncIterator[Any]:
        """Yield the database handle; driver errors leave as library errors."""
        try:
            yield await self._get_db()
        except Exception as exc:
            mapped = translate_mongo_error(exc, action=action)
            if mapped is None or mapped is exc:
                raise
            raise mapped from exc

    @asynccontextmanager
    async def transaction(self, action: str) -> AsyncIterator[tuple[Any, Any]]:
        """Yield (db, session) inside a multi-document transaction.

        Requires a replica set or sharded cluster deployment.
        """
        async with self.collections(action) as db:
            async with await self._client.start_session() as session:
                async with session.start_transaction():
                    yield db, session

    async def next_id(self, db, collection: str) -> int:
        from pymongo import ReturnDocument

        counter = await db.counters.find_one_and_update(
            {"_id": collection},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(counter["seq"])

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            self._db = None
            logger.info("MongoDB library client closed")
