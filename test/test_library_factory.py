import sys
import unittest
from pathlib import Path

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from infrastructure.library import build_library_storage, resolve_backend  # noqa: E402


class TestLibraryStorageFactory(unittest.IsolatedAsyncioTestCase):
    def test_explicit_backend_wins(self) -> None:
        self.assertEqual(resolve_backend("Memory", postgres_dsn="postgresql://x"), "memory")

    def test_auto_selection_order(self) -> None:
        self.assertEqual(
            resolve_backend("", postgres_dsn="postgresql://x", mongo_uri="mongodb://y"), "postgres"
        )
        self.assertEqual(resolve_backend("", postgres_dsn="  ", mongo_uri="mongodb://y"), "mongo")
        self.assertEqual(resolve_backend(""), "memory")

    def test_unknown_backend_rejected(self) -> None:
        with self.assertRaises(ValueError):
            build_library_storage("sqlite")

    def test_backend_without_connection_string_rejected(self) -> None:
        with self.assertRaises(ValueError):
            build_library_storage("postgres")
        with self.assertRaises(ValueError):
            build_library_storage("mongo", mongo_uri="")

    async def test_memory_storage_exposes_activity_stores(self) -> None:
        storage = build_library_storage("memory")
        self.assertEqual(storage.backend, "memory")
        self.assertIs(storage.activity("watched"), storage.watched)
        self.assertEqual(storage.activity("favorites").kind, "favorites")
        await storage.close()

    def test_postgres_storage_is_lazy(self) -> None:
        # Building the bundle must not connect; the pool is created on first use.
        storage = build_library_storage("postgres", postgres_dsn="postgresql://nobody@127.0.0.1:1/none")
        self.assertEqual(storage.backend, "postgres")
        self.assertIs(storage.media._db, storage.lists._db)


if __name__ == "__main__":
    unittest.main()
