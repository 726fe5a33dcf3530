from __future__ import annotations

from infrastructure.config.settings import (  # noqa: F401
    LIBRARY_BACKEND,
    MONGO_DB,
    MONGO_SERVER_SELECTION_TIMEOUT_MS,
    POSTGRES_POOL_MAX_SIZE,
    POSTGRES_POOL_MIN_SIZE,
)

__all__ = [
    "LIBRARY_BACKEND",
    "MONGO_DB",
    "MONGO_SERVER_SELECTION_TIMEOUT_MS",
    "POSTGRES_POOL_MAX_SIZE",
    "POSTGRES_POOL_MIN_SIZE",
]
