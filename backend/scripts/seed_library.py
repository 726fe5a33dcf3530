import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Dict

import yaml

# Add backend root to sys.path to allow imports
backend_root = Path(__file__).parent.parent
sys.path.append(str(backend_root))

from application.library import LibraryService  # noqa: E402
from config.database import get_mongo_db, get_mongo_uri, get_postgres_dsn  # noqa: E402
from config.settings import LIBRARY_BACKEND  # noqa: E402
from domain.library import LibraryError, MediaDraft  # noqa: E402
from infrastructure.library import build_library_storage  # noqa: E402

DEFAULT_SEED_PATH = backend_root.parent / "data" / "seed_media.yaml"


def load_seed(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return data if isinstance(data, dict) else {}


async def seed(path: Path, backend: str) -> int:
    data = load_seed(path)
    storage = build_library_storage(
        backend,
        postgres_dsn=get_postgres_dsn(),
        mongo_uri=get_mongo_uri(),
        mongo_db=get_mongo_db(),
    )
    service = LibraryService(storage=storage)
    try:
        user = data.get("user") or {}
        if user:
            synced = await storage.users.sync_user(
                str(user.get("id") or ""),
                str(user.get("email") or ""),
                display_name=user.get("display_name"),
            )
            print(f"Synced user: {synced.display_name or synced.email} (ID: {synced.id})")

        count = 0
        for raw in data.get("media") or []:
            media = await service.resolve_media(MediaDraft(**raw))
            print(f"  {media.kind:<5} {media.external_id:>8}  {media.title} (id={media.id})")
            count += 1
        print(f"Seeded {count} media items into the {storage.backend} backend.")
        return 0
    except LibraryError as exc:
        print(f"Error seeding library: {exc}")
        return 1
    finally:
        await storage.close()


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the media catalog with sample rows.")
    parser.add_argument("--file", type=Path, default=DEFAULT_SEED_PATH, help="seed YAML path")
    parser.add_argument(
        "--backend",
        default=LIBRARY_BACKEND,
        choices=["", "postgres", "mongo", "memory"],
        help="storage backend (default: LIBRARY_BACKEND or auto)",
    )
    args = parser.parse_args()
    return asyncio.run(seed(args.file, args.backend))


if __name__ == "__main__":
    raise SystemExit(main())
