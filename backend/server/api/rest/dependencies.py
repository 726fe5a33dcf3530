from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from application.library import LibraryService, LibraryStorage, StatsService
from config.settings import LIBRARY_BACKEND


@lru_cache(maxsize=1)
def _build_library_storage() -> LibraryStorage:
    from config.database import get_mongo_db, get_mongo_uri, get_postgres_dsn
    from infrastructure.library import build_library_storage

    return build_library_storage(
        LIBRARY_BACKEND or "",
        postgres_dsn=get_postgres_dsn(),
        mongo_uri=get_mongo_uri(),
        mongo_db=get_mongo_db(),
    )


def get_library_storage() -> LibraryStorage:
    """获取存储接口实例（进程内单例）。"""
    return _build_library_storage()


def get_library_service(
    storage: LibraryStorage = Depends(get_library_storage),
) -> LibraryService:
    return LibraryService(storage=storage)


def get_stats_service(
    storage: LibraryStorage = Depends(get_library_storage),
) -> StatsService:
    return StatsService(storage=storage)


async def shutdown_dependencies() -> None:
    """Shutdown hooks for long-lived adapters (connection pools, clients)."""
    if _build_library_storage.cache_info().currsize == 0:
        return
    storage = _build_library_storage()
    await storage.close()
    _build_library_storage.cache_clear()
