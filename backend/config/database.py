import os
from typing import Optional


def _get_env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"环境变量 {key} 需要整数值，但当前为 {raw}") from exc


def get_postgres_dsn() -> Optional[str]:
    """Service-side accessor for the Postgres DSN (library relational backend).

    Notes:
    - This function intentionally lives under `config.*` so server/application
      layers can consume it without importing `infrastructure.config.*`.
    - `.env` loading is centralized in config entrypoints (settings.py), so we
      only read environment variables here.
    """

    dsn = (os.getenv("POSTGRES_DSN") or "").strip()
    if dsn:
        return dsn

    host = (os.getenv("POSTGRES_HOST") or "").strip()
    if not host:
        return None

    port = _get_env_int("POSTGRES_PORT", 5432)
    user = os.getenv("POSTGRES_USER", "postgres")
    password = os.getenv("POSTGRES_PASSWORD", "postgres")
    db = os.getenv("POSTGRES_DB", "cinelog")
    return f"postgresql://{user}:{password}@{host}:{port}/{db}"


def get_mongo_uri() -> Optional[str]:
    """Service-side accessor for the MongoDB connection string (document backend)."""
    uri = (os.getenv("MONGO_URI") or os.getenv("MONGODB_URI") or "").strip()
    return uri or None


def get_mongo_db() -> Optional[str]:
    name = (os.getenv("MONGO_DB") or "").strip()
    return name or None
