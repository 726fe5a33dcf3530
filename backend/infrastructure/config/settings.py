import os
from typing import Optional

from dotenv import load_dotenv

# 统一加载环境变量，确保配置来源一致。
# The project-root .env wins over the shell environment so that edits to .env
# always take effect.
load_dotenv(override=True)


def _get_env_int(key: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"环境变量 {key} 需要整数值，但当前为 {raw}") from exc


# ===== Library storage backend =====
#
# postgres | mongo | memory. Empty means "auto": postgres when a DSN is given,
# mongo when a URI is given, memory otherwise.
LIBRARY_BACKEND = os.getenv("LIBRARY_BACKEND", "").strip().lower()

# ===== PostgreSQL (asyncpg pool) =====

POSTGRES_POOL_MIN_SIZE = _get_env_int("POSTGRES_POOL_MIN", 1) or 1
POSTGRES_POOL_MAX_SIZE = _get_env_int("POSTGRES_POOL_MAX", 10) or 10

# ===== MongoDB (motor) =====

MONGO_DB = os.getenv("MONGO_DB", "cinelog").strip() or "cinelog"
MONGO_SERVER_SELECTION_TIMEOUT_MS = _get_env_int("MONGO_SERVER_SELECTION_TIMEOUT_MS", 5000) or 5000
