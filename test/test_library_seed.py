import importlib.util
import sys
import unittest
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parents[1]
_BACKEND_ROOT = _REPO_ROOT / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))


def _load_seed_script():
    path = _BACKEND_ROOT / "scripts" / "seed_library.py"
    spec = importlib.util.spec_from_file_location("seed_library", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestSeedLibrary(unittest.IsolatedAsyncioTestCase):
    def test_seed_file_parses(self) -> None:
        seed = _load_seed_script()
        data = seed.load_seed(seed.DEFAULT_SEED_PATH)
        ext_ids = [m["external_id"] for m in data["media"]]
        self.assertEqual(ext_ids, [299054, 1396, 956920])
        self.assertEqual(data["user"]["email"], "test@example.com")

    async def test_seed_into_memory_backend(self) -> None:
        seed = _load_seed_script()
        code = await seed.seed(seed.DEFAULT_SEED_PATH, "memory")
        self.assertEqual(code, 0)


if __name__ == "__main__":
    unittest.main()
