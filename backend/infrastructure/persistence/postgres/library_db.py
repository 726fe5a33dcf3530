from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping, Optional

from domain.library import ConflictError, DependencyError, LibraryError, NotFoundError

logger = logging.getLogger(__name__)

# asyncpg exception types aren't imported at module level; match by class name.
_UNIQUE_VIOLATION = {"UniqueViolationError"}
_FOREIGN_KEY_VIOLATION = {"ForeignKeyViolationError"}
_UNAVAILABLE = {
    "CannotConnectNowError",
    "ConnectionDoesNotExistError",
    "ConnectionFailureError",
    "InterfaceError",
    "InternalClientError",
    "PostgresConnectionError",
    "TooManyConnectionsError",
}


def translate_db_error(exc: BaseException, *, action: str) -> Optional[LibraryError]:
    """Map an asyncpg/OS failure to the library error taxonomy (None if unmapped)."""
    if isinstance(exc, LibraryError):
        return exc
    name = exc.__class__.__name__
    if name in _UNIQUE_VIOLATION:
        return ConflictError(f"{action}: duplicate key")
    if name in _FOREIGN_KEY_VIOLATION:
        return NotFoundError(f"{action}: referenced row does not exist")
    if name in _UNAVAILABLE or isinstance(exc, (OSError, asyncio.TimeoutError)):
        return DependencyError(f"{action}: postgres unavailable ({exc})")
    return None


def row_to_dict(row: Any) -> dict[str, Any]:
    if row is None:
        return {}
    if isinstance(row, Mapping):
        return dict(row)
    return dict(row.items())


class PostgresLibraryDatabase:
    """Shared asyncpg pool + schema for the library stores.

    The stores join across each other's tables (list items -> media -> watched
    ratings), so they share one pool instead of owning one each.
    """

    def __init__(
        self,
        *,
        dsn: str,
        min_size: int = 1,
        max_size: int = 10,
    ) -> None:
        self._dsn = dsn
        self._min_size = min_size
        self._max_size = max_size
        self._pool = None
        self._pool_lock = asyncio.Lock()

    async def _get_pool(self):
        if self._pool is not None:
            return self._pool
        async with self._pool_lock:
            if self._pool is not None:
                return self._pool
            import asyncpg  # type: ignore

            pool = await asyncpg.create_pool(
                self._dsn,
                min_size=self._min_size,
                max_size=self._max_size,
            )
            try:
                await self._ensure_schema(pool)
            except Exception:
                await pool.close()
                raise
            self._pool = pool
            logger.info("PostgreSQL library pool initialized")
            return self._pool

    @staticmethod
    async def _ensure_schema(pool) -> None:
        async with pool.acquire() as conn:
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id text PRIMARY KEY,
                    email text NOT NULL,
                    display_name text,
                    photo_url text,
                    created_at timestamptz NOT NULL DEFAULT NOW()
                );
                """
            )
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS media_items (
                    id serial PRIMARY KEY,
                    external_id int NOT NULL,
                    kind text NOT NULL CHECK (kind IN ('movie', 'tv')),
                    title text NOT NULL,
                    poster_path text,
                    backdrop_path text,
                    overview text,
                    release_date text,
                    vote_average double precision,
                    episode_count int,
                    runtime int,
                    created_at timestamptz NOT NULL DEFAULT NOW(),
                    CONSTRAINT uq_media_items_external UNIQUE (external_id, kind)
                );
                """
            )
            for table, extra in (
                ("watchlist_items", ""),
                ("watched_items", "rating int CHECK (rating BETWEEN 0 AND 10),"),
                ("favorite_items", ""),
            ):
                await conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {table} (
                        id serial PRIMARY KEY,
                        user_id text NOT NULL,
                        media_id int NOT NULL REFERENCES media_items(id),
                        {extra}
                        created_at timestamptz NOT NULL DEFAULT NOW(),
                        CONSTRAINT uq_{table}_user_media UNIQUE (user_id, media_id)
                    );
                    """
                )
                await conn.execute(
                    f"CREATE INDEX IF NOT EXISTS {table}_user_created_idx ON {table}(user_id, created_at DESC);"
                )
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS lists (
                    id serial PRIMARY KEY,
                    user_id text NOT NULL,
                    name text NOT NULL CHECK (btrim(name) <> ''),
                    description text,
                    is_public boolean NOT NULL DEFAULT false,
                    created_at timestamptz NOT NULL DEFAULT NOW(),
                    updated_at timestamptz NOT NULL DEFAULT NOW()
                );
                """
            )
            await conn.execute("CREATE INDEX IF NOT EXISTS lists_user_id_idx ON lists(user_id);")
            # No ON DELETE CASCADE: delete_list removes items itself, in one transaction.
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS list_items (
                    id serial PRIMARY KEY,
                    list_id int NOT NULL REFERENCES lists(id),
                    media_id int NOT NULL REFERENCES media_items(id),
                    status varchar(50) NOT NULL DEFAULT 'watched',
                    seasons_watched int,
                    created_at timestamptz NOT NULL DEFAULT NOW(),
                    CONSTRAINT uq_list_items_list_media UNIQUE (list_id, media_id)
                );
                """
            )
            # Older deployments tracked episodes instead of seasons.
            await conn.execute("ALTER TABLE list_items ADD COLUMN IF NOT EXISTS seasons_watched int;")
            try:
                await conn.execute("ALTER TABLE list_items DROP COLUMN IF EXISTS episodes_watched;")
            except Exception as e:
                logger.warning("library schema: could not drop list_items.episodes_watched: %s", e)
            await conn.execute(
                "CREATE INDEX IF NOT EXISTS list_items_list_created_idx ON list_items(list_id, created_at);"
            )

    @asynccontextmanager
    async def connection(self, action: str) -> AsyncIterator[Any]:
        """Acquire a pooled connection; driver errors leave as library errors."""
        try:
            pool = await self._get_pool()
            async with pool.acquire() as conn:
                yield conn
        except Exception as exc:
            mapped = translate_db_error(exc, action=action)
            if mapped is None or mapped is exc:
                raise
            raise mapped from exc

    @asynccontextmanager
    async def transaction(self, action: str) -> AsyncIterator[Any]:
        async with self.connection(action) as conn:
            async with conn.transaction():
                yield conn

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("PostgreSQL library pool closed")
