import sys
import unittest
from pathlib import Path

_TEST_ROOT = Path(__file__).resolve().parent
if str(_TEST_ROOT) not in sys.path:
    sys.path.insert(0, str(_TEST_ROOT))

from library_store_contract import LibraryStoreContract  # noqa: E402


class TestMemoryLibraryStore(LibraryStoreContract, unittest.IsolatedAsyncioTestCase):
    async def make_storage(self):
        from infrastructure.library import build_library_storage

        return build_library_storage("memory")

    async def test_each_storage_owns_its_state(self):
        from infrastructure.library import build_library_storage

        media = await self._media()
        await self.storage.watchlist.add(self.user_id, media.id)

        other = build_library_storage("memory")
        self.assertIsNone(await other.media.get_media(media.id))
        self.assertEqual(await other.watchlist.list_by_user(self.user_id), [])

    async def test_recent_activity_exact_order(self):
        user_list = await self.storage.lists.create_list(self.user_id, "Queue")
        watched = await self._media("Watched")
        favorite = await self._media("Favorite")
        listed = await self._media("Listed")
        await self.storage.watched.add(self.user_id, watched.id, rating=6)
        await self.storage.favorites.add(self.user_id, favorite.id)
        await self.storage.lists.add_item(user_list.id, listed.id)
        await self.storage.favorites.add(self.user_id, watched.id)

        events = await self.stats.get_recent_activity(self.user_id, limit=3)
        self.assertEqual(
            [(e.kind, e.media.title) for e in events],
            [("favorited", "Watched"), ("added_to_list", "Listed"), ("favorited", "Favorite")],
        )
        self.assertEqual(events[1].list_name, "Queue")

    async def test_delete_list_leaves_other_lists_alone(self):
        media = await self._media()
        doomed = await self.storage.lists.create_list(self.user_id, "Doomed")
        kept = await self.storage.lists.create_list(self.user_id, "Kept")
        await self.storage.lists.add_item(doomed.id, media.id)
        await self.storage.lists.add_item(kept.id, media.id)

        await self.storage.lists.delete_list(doomed.id)

        result = await self.storage.lists.get_list_with_items(kept.id)
        self.assertEqual([v.media.id for v in result.items], [media.id])


if __name__ == "__main__":
    unittest.main()
