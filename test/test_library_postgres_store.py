import os
import sys
import unittest
from pathlib import Path

_TEST_ROOT = Path(__file__).resolve().parent
if str(_TEST_ROOT) not in sys.path:
    sys.path.insert(0, str(_TEST_ROOT))

from library_store_contract import LibraryStoreContract  # noqa: E402


@unittest.skipUnless(
    os.getenv("RUN_POSTGRES_TESTS", "").strip() == "1",
    "Set RUN_POSTGRES_TESTS=1 (and POSTGRES_DSN or POSTGRES_HOST/...) to run Postgres library tests.",
)
class TestPostgresLibraryStore(LibraryStoreContract, unittest.IsolatedAsyncioTestCase):
    async def make_storage(self):
        # Import here so the skip guard is evaluated before the driver import.
        from config.database import get_postgres_dsn
        from infrastructure.library import build_library_storage

        dsn = get_postgres_dsn()
        if not dsn:
            self.skipTest("Postgres env not configured (POSTGRES_DSN/POSTGRES_HOST).")
        return build_library_storage("postgres", postgres_dsn=dsn)


if __name__ == "__main__":
    unittest.main()
