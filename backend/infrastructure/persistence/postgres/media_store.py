from __future__ import annotations

import logging
from typing import Optional

from application.ports.media_store_port import MediaStorePort
from domain.library import (
    ConflictError,
    MediaDraft,
    MediaItem,
    media_from_record,
    validate_media_kind,
)
from infrastructure.persistence.postgres.in_memory_tables import InMemoryTables
from infrastructure.persistence.postgres.library_db import PostgresLibraryDatabase, row_to_dict

logger = logging.getLogger(__name__)

_MEDIA_COLUMNS = (
    "id, external_id, kind, title, poster_path, backdrop_path, overview, "
    "release_date, vote_average, episode_count, runtime, created_at"
)


class InMemoryMediaStore(MediaStorePort):
    """In-memory media catalog for dev/tests when no database is configured."""

    def __init__(self, *, tables: InMemoryTables) -> None:
        self._tables = tables

    async def get_media(self, media_id: int) -> Optional[MediaItem]:
        row = self._tables.table("media_items").get(int(media_id))
        return media_from_record(row) if row else None

    async def get_media_by_external_id(self, external_id: int, kind: str) -> Optional[MediaItem]:
        kind = validate_media_kind(kind)
        for row in self._tables.table("media_items").values():
            if row["external_id"] == int(external_id) and row["kind"] == kind:
                return media_from_record(row)
        return None

    async def create_media(self, draft: MediaDraft) -> MediaItem:
        draft = draft.validated()
        if await self.get_media_by_external_id(draft.external_id, draft.kind) is not None:
            raise ConflictError(f"media {draft.kind}/{draft.external_id} already exists")
        media_id = self._tables.next_id("media_items")
        row = {"id": media_id, **draft.to_record(), "created_at": self._tables.now()}
        self._tables.table("media_items")[media_id] = row
        return media_from_record(row)


class PostgresMediaStore(MediaStorePort):
    """Postgres-backed media catalog (asyncpg)."""

    def __init__(self, *, db: PostgresLibraryDatabase) -> None:
        self._db = db

    async def get_media(self, media_id: int) -> Optional[MediaItem]:
        async with self._db.connection("get media") as conn:
            row = await conn.fetchrow(
                f"SELECT {_MEDIA_COLUMNS} FROM media_items WHERE id = $1",
                int(media_id),
            )
        return media_from_record(row_to_dict(row)) if row else None

    async def get_media_by_external_id(self, external_id: int, kind: str) -> Optional[MediaItem]:
        kind = validate_media_kind(kind)
        async with self._db.connection("get media by external id") as conn:
            row = await conn.fetchrow(
                f"SELECT {_MEDIA_COLUMNS} FROM media_items WHERE external_id = $1 AND kind = $2",
                int(external_id),
                kind,
            )
        return media_from_record(row_to_dict(row)) if row else None

    async def create_media(self, draft: MediaDraft) -> MediaItem:
        draft = draft.validated()
        try:
            async with self._db.connection("create media") as conn:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO media_items (
                        external_id, kind, title, poster_path, backdrop_path, overview,
                        release_date, vote_average, episode_count, runtime
                    )
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                    RETURNING {_MEDIA_COLUMNS}
                    """,
                    draft.external_id,
                    draft.kind,
                    draft.title,
                    draft.poster_path,
                    draft.backdrop_path,
                    draft.overview,
                    draft.release_date,
                    draft.vote_average,
                    draft.episode_count,
                    draft.runtime,
                )
        except ConflictError as exc:
            raise ConflictError(f"media {draft.kind}/{draft.external_id} already exists") from exc
        if not row:
            raise RuntimeError("failed to insert media item")
        return media_from_record(row_to_dict(row))


# Media columns for joins, prefixed so they can't collide with the joined row.
MEDIA_JOIN_COLUMNS = ", ".join(
    f"m.{col} AS m_{col}"
    for col in (
        "id",
        "external_id",
        "kind",
        "title",
        "poster_path",
        "backdrop_path",
        "overview",
        "release_date",
        "vote_average",
        "episode_count",
        "runtime",
        "created_at",
    )
)


def media_from_joined_row(row: dict) -> MediaItem:
    return media_from_record({k[2:]: v for k, v in row.items() if k.startswith("m_")})
