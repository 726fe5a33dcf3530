import os
import sys
import unittest
from pathlib import Path

_TEST_ROOT = Path(__file__).resolve().parent
if str(_TEST_ROOT) not in sys.path:
    sys.path.insert(0, str(_TEST_ROOT))

from library_store_contract import LibraryStoreContract  # noqa: E402


@unittest.skipUnless(
    os.getenv("RUN_MONGO_TESTS", "").strip() == "1",
    "Set RUN_MONGO_TESTS=1 (and MONGO_URI pointing at a replica set) to run MongoDB library tests.",
)
class TestMongoLibraryStore(LibraryStoreContract, unittest.IsolatedAsyncioTestCase):
    async def make_storage(self):
        from config.database import get_mongo_db, get_mongo_uri
        from infrastructure.library import build_library_storage

        uri = get_mongo_uri()
        if not uri:
            self.skipTest("MongoDB env not configured (MONGO_URI).")
        return build_library_storage(
            "mongo",
            mongo_uri=uri,
            mongo_db=get_mongo_db() or "cinelog_test",
        )


if __name__ == "__main__":
    unittest.main()
