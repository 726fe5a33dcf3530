from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from application.ports.media_store_port import MediaStorePort
from domain.library import ConflictError, MediaDraft, MediaItem, media_from_record, validate_media_kind
from infrastructure.persistence.mongo.library_db import MongoLibraryDatabase, doc_to_row


class MongoMediaStore(MediaStorePort):
    """MongoDB-backed media catalog (motor)."""

    def __init__(self, *, db: MongoLibraryDatabase) -> None:
        self._db = db

    async def get_media(self, media_id: int) -> Optional[MediaItem]:
        async with self._db.collections("get media") as db:
            doc = await db.media_items.find_one({"_id": int(media_id)})
        return media_from_record(doc_to_row(doc)) if doc else None

    async def get_media_by_external_id(self, external_id: int, kind: str) -> Optional[MediaItem]:
        kind = validate_media_kind(kind)
        async with self._db.collections("get media by external id") as db:
            doc = await db.media_items.find_one({"external_id": int(external_id), "kind": kind})
        return media_from_record(doc_to_row(doc)) if doc else None

    async def create_media(self, draft: MediaDraft) -> MediaItem:
        draft = draft.validated()
        try:
            async with self._db.collections("create media") as db:
                doc = {
                    "_id": await self._db.next_id(db, "media_items"),
                    **draft.to_record(),
                    "created_at": datetime.now(timezone.utc),
                }
                await db.media_items.insert_one(doc)
        except ConflictError as exc:
            raise ConflictError(f"media {draft.kind}/{draft.external_id} already exists") from exc
        return media_from_record(doc_to_row(doc))
