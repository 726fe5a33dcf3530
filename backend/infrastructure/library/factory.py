"""Library storage factory.

Builds a :class:`LibraryStorage` for one of the supported backends so the
server can pick relational, document or in-process persistence at startup
without touching any handler code.
"""

from __future__ import annotations

import logging
from typing import Literal, Optional

from application.library.storage import LibraryStorage
from domain.library import ACTIVITY_FAVORITES, ACTIVITY_WATCHED, ACTIVITY_WATCHLIST
from infrastructure.config.settings import (
    LIBRARY_BACKEND,
    MONGO_DB,
    MONGO_SERVER_SELECTION_TIMEOUT_MS,
    POSTGRES_POOL_MAX_SIZE,
    POSTGRES_POOL_MIN_SIZE,
)

logger = logging.getLogger(__name__)

BackendType = Literal["postgres", "mongo", "memory", ""]

SUPPORTED_BACKENDS = ("postgres", "mongo", "memory")


def resolve_backend(
    backend: Optional[str],
    *,
    postgres_dsn: Optional[str] = None,
    mongo_uri: Optional[str] = None,
) -> str:
    """Pick the backend name: explicit value first, then whichever store is configured."""
    if backend is None:
        backend = LIBRARY_BACKEND
    backend = (backend or "").strip().lower()
    if backend:
        return backend
    if (postgres_dsn or "").strip():
        return "postgres"
    if (mongo_uri or "").strip():
        return "mongo"
    return "memory"


class LibraryStorageFactory:
    """Factory for creating library storage bundles based on configuration."""

    @staticmethod
    def create(
        backend: BackendType | None = None,
        *,
        postgres_dsn: Optional[str] = None,
        mongo_uri: Optional[str] = None,
        mongo_db: Optional[str] = None,
    ) -> LibraryStorage:
        """Create a storage bundle.

        Args:
            backend: 'postgres', 'mongo', 'memory', or None/'' for auto-selection
                (LIBRARY_BACKEND, then the configured DSN/URI, then memory).
            postgres_dsn: asyncpg DSN, required for 'postgres'.
            mongo_uri: MongoDB connection string, required for 'mongo'.
            mongo_db: database name for 'mongo' (defaults to MONGO_DB).

        Raises:
            ValueError: unsupported backend, or a backend without its connection string.
        """
        name = resolve_backend(backend, postgres_dsn=postgres_dsn, mongo_uri=mongo_uri)

        match name:
            case "postgres":
                if not (postgres_dsn or "").strip():
                    raise ValueError("LIBRARY_BACKEND=postgres requires POSTGRES_DSN (or POSTGRES_HOST/...)")

                from infrastructure.persistence.postgres.activity_store import PostgresActivityStore
                from infrastructure.persistence.postgres.library_db import PostgresLibraryDatabase
                from infrastructure.persistence.postgres.list_store import PostgresListStore
                from infrastructure.persistence.postgres.media_store import PostgresMediaStore
                from infrastructure.persistence.postgres.user_store import PostgresUserStore

                db = PostgresLibraryDatabase(
                    dsn=str(postgres_dsn),
                    min_size=POSTGRES_POOL_MIN_SIZE,
                    max_size=POSTGRES_POOL_MAX_SIZE,
                )
                storage = LibraryStorage(
                    backend=name,
                    users=PostgresUserStore(db=db),
                    media=PostgresMediaStore(db=db),
                    watchlist=PostgresActivityStore(kind=ACTIVITY_WATCHLIST, db=db),
                    watched=PostgresActivityStore(kind=ACTIVITY_WATCHED, db=db),
                    favorites=PostgresActivityStore(kind=ACTIVITY_FAVORITES, db=db),
                    lists=PostgresListStore(db=db),
                    closer=db.close,
                )

            case "mongo":
                if not (mongo_uri or "").strip():
                    raise ValueError("LIBRARY_BACKEND=mongo requires MONGO_URI")

                from infrastructure.persistence.mongo.activity_store import MongoActivityStore
                from infrastructure.persistence.mongo.library_db import MongoLibraryDatabase
                from infrastructure.persistence.mongo.list_store import MongoListStore
                from infrastructure.persistence.mongo.media_store import MongoMediaStore
                from infrastructure.persistence.mongo.user_store import MongoUserStore

                db = MongoLibraryDatabase(
                    uri=str(mongo_uri),
                    database=(mongo_db or MONGO_DB),
                    server_selection_timeout_ms=MONGO_SERVER_SELECTION_TIMEOUT_MS,
                )
                storage = LibraryStorage(
                    backend=name,
                    users=MongoUserStore(db=db),
                    media=MongoMediaStore(db=db),
                    watchlist=MongoActivityStore(kind=ACTIVITY_WATCHLIST, db=db),
                    watched=MongoActivityStore(kind=ACTIVITY_WATCHED, db=db),
                    favorites=MongoActivityStore(kind=ACTIVITY_FAVORITES, db=db),
                    lists=MongoListStore(db=db),
                    closer=db.close,
                )

            case "memory":
                from infrastructure.persistence.postgres.activity_store import InMemoryActivityStore
                from infrastructure.persistence.postgres.in_memory_tables import InMemoryTables
                from infrastructure.persistence.postgres.list_store import InMemoryListStore
                from infrastructure.persistence.postgres.media_store import InMemoryMediaStore
                from infrastructure.persistence.postgres.user_store import InMemoryUserStore

                tables = InMemoryTables()
                storage = LibraryStorage(
                    backend=name,
                    users=InMemoryUserStore(tables=tables),
                    media=InMemoryMediaStore(tables=tables),
                    watchlist=InMemoryActivityStore(kind=ACTIVITY_WATCHLIST, tables=tables),
                    watched=InMemoryActivityStore(kind=ACTIVITY_WATCHED, tables=tables),
                    favorites=InMemoryActivityStore(kind=ACTIVITY_FAVORITES, tables=tables),
                    lists=InMemoryListStore(tables=tables),
                    closer=tables.close,
                )

            case _:
                raise ValueError(
                    f"Unsupported LIBRARY_BACKEND: {name!r}. "
                    f"Supported values: {', '.join(repr(b) for b in SUPPORTED_BACKENDS)}"
                )

        logger.info("library storage initialised (backend=%s)", name)
        return storage


def build_library_storage(
    backend: BackendType | None = None,
    *,
    postgres_dsn: Optional[str] = None,
    mongo_uri: Optional[str] = None,
    mongo_db: Optional[str] = None,
) -> LibraryStorage:
    """Shorthand for LibraryStorageFactory.create()."""
    return LibraryStorageFactory.create(
        backend,
        postgres_dsn=postgres_dsn,
        mongo_uri=mongo_uri,
        mongo_db=mongo_db,
    )
