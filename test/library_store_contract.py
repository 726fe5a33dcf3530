"""Behaviour every library backend must share.

Mixed into one `IsolatedAsyncioTestCase` per backend; subclasses provide
`make_storage()`. Users get a fresh id per test and catalog rows are created
through resolve-or-create, so the suite can run against a shared database.
"""

import sys
from pathlib import Path
from uuid import uuid4

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from application.library import LibraryService, StatsService
from domain.library import (
    ConflictError,
    DuplicateError,
    ListItemPatch,
    ListPatch,
    MediaDraft,
    NotFoundError,
    ValidationError,
)


def fresh_external_id() -> int:
    return uuid4().int % 2_000_000_000 + 1


class LibraryStoreContract:
    async def make_storage(self):
        raise NotImplementedError

    async def asyncSetUp(self) -> None:
        self.storage = await self.make_storage()
        self.service = LibraryService(storage=self.storage)
        self.stats = StatsService(storage=self.storage)
        self.user_id = f"u-{uuid4().hex[:12]}"
        self.other_user_id = f"u-{uuid4().hex[:12]}"

    async def asyncTearDown(self) -> None:
        await self.storage.close()

    async def _media(self, title="Some Film", *, kind="movie", external_id=None, runtime=None, episode_count=None):
        draft = MediaDraft(
            external_id=external_id or fresh_external_id(),
            kind=kind,
            title=title,
            runtime=runtime,
            episode_count=episode_count,
        )
        return await self.service.resolve_media(draft)

    # ----- media catalog -----

    async def test_media_create_and_lookup(self):
        ext = fresh_external_id()
        created = await self.storage.media.create_media(
            MediaDraft(external_id=ext, kind="tv", title="  Fallout  ", episode_count=8, vote_average=8.1)
        )
        self.assertEqual(created.title, "Fallout")
        self.assertEqual(created.kind, "tv")

        by_id = await self.storage.media.get_media(created.id)
        by_ext = await self.storage.media.get_media_by_external_id(ext, "tv")
        self.assertEqual(by_id.id, created.id)
        self.assertEqual(by_ext.id, created.id)
        self.assertEqual(by_ext.episode_count, 8)
        self.assertIsNone(await self.storage.media.get_media_by_external_id(ext, "movie"))

    async def test_media_duplicate_external_id_conflicts(self):
        ext = fresh_external_id()
        await self.storage.media.create_media(MediaDraft(external_id=ext, kind="movie", title="A"))
        with self.assertRaises(ConflictError):
            await self.storage.media.create_media(MediaDraft(external_id=ext, kind="movie", title="A again"))

    async def test_media_rejects_bad_input(self):
        for draft in (
            MediaDraft(external_id=fresh_external_id(), kind="book", title="x"),
            MediaDraft(external_id=fresh_external_id(), kind="movie", title="   "),
            MediaDraft(external_id=0, kind="movie", title="x"),
        ):
            with self.assertRaises(ValidationError):
                await self.storage.media.create_media(draft)

    async def test_missing_media_reads_none(self):
        self.assertIsNone(await self.storage.media.get_media(2_000_000_001))

    async def test_resolve_media_is_idempotent(self):
        ext = fresh_external_id()
        first = await self._media("Dune: Part Two", external_id=ext)
        second = await self._media("Dune: Part Two", external_id=ext)
        self.assertEqual(first.id, second.id)

    # ----- activity stores -----

    async def test_activity_add_twice_keeps_one_row(self):
        media = await self._media()
        await self.storage.watchlist.add(self.user_id, media.id)
        with self.assertRaises(DuplicateError) as ctx:
            await self.storage.watchlist.add(self.user_id, media.id)
        self.assertIsInstance(ctx.exception, ConflictError)

        entries = await self.storage.watchlist.list_by_user(self.user_id)
        self.assertEqual([e.media.id for e in entries], [media.id])

    async def test_activity_remove_is_idempotent(self):
        media = await self._media()
        await self.storage.favorites.add(self.user_id, media.id)
        self.assertTrue(await self.storage.favorites.exists(self.user_id, media.id))

        await self.storage.favorites.remove(self.user_id, media.id)
        await self.storage.favorites.remove(self.user_id, media.id)
        self.assertFalse(await self.storage.favorites.exists(self.user_id, media.id))
        self.assertEqual(await self.storage.favorites.list_by_user(self.user_id), [])

    async def test_activity_stores_are_independent(self):
        media = await self._media()
        await self.storage.watchlist.add(self.user_id, media.id)
        self.assertFalse(await self.storage.watched.exists(self.user_id, media.id))
        self.assertFalse(await self.storage.watchlist.exists(self.other_user_id, media.id))

    async def test_activity_lists_newest_first(self):
        first = await self._media("First")
        second = await self._media("Second")
        await self.storage.watchlist.add(self.user_id, first.id)
        await self.storage.watchlist.add(self.user_id, second.id)
        entries = await self.storage.watchlist.list_by_user(self.user_id)
        self.assertEqual([e.media.title for e in entries], ["Second", "First"])

    async def test_watched_rating_is_validated_before_write(self):
        media = await self._media()
        for bad in (11, -1, 5.5, "7", True):
            with self.assertRaises(ValidationError):
                await self.storage.watched.add(self.user_id, media.id, rating=bad)
        self.assertFalse(await self.storage.watched.exists(self.user_id, media.id))

        item = await self.storage.watched.add(self.user_id, media.id, rating=10)
        self.assertEqual(item.rating, 10)
        stored = await self.storage.watched.get(self.user_id, media.id)
        self.assertEqual(stored.rating, 10)

    async def test_rating_only_on_watched(self):
        media = await self._media()
        with self.assertRaises(ValidationError):
            await self.storage.watchlist.add(self.user_id, media.id, rating=5)

    async def test_activity_unknown_media_not_found(self):
        with self.assertRaises(NotFoundError):
            await self.storage.watched.add(self.user_id, 2_000_000_001)

    async def test_mark_watched_replaces_rating(self):
        media = await self._media()
        await self.service.mark_watched(self.user_id, media.id, rating=4)
        await self.service.mark_watched(self.user_id, media.id, rating=9)
        entries = await self.storage.watched.list_by_user(self.user_id)
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].item.rating, 9)

    # ----- lists -----

    async def test_create_list_round_trip(self):
        created = await self.storage.lists.create_list(self.user_id, "  Weekend  ", description="cozy")
        self.assertEqual(created.name, "Weekend")
        self.assertFalse(created.is_public)

        result = await self.storage.lists.get_list_with_items(created.id)
        self.assertEqual(result.list.name, "Weekend")
        self.assertEqual(result.list.description, "cozy")
        self.assertEqual(result.items, ())

    async def test_create_list_rejects_empty_name(self):
        with self.assertRaises(ValidationError):
            await self.storage.lists.create_list(self.user_id, "   ")
        self.assertEqual(await self.storage.lists.lists_by_user(self.user_id), [])

    async def test_lists_by_user_newest_first(self):
        await self.storage.lists.create_list(self.user_id, "Old")
        await self.storage.lists.create_list(self.user_id, "New")
        await self.storage.lists.create_list(self.other_user_id, "Not mine")
        names = [l.name for l in await self.storage.lists.lists_by_user(self.user_id)]
        self.assertEqual(names, ["New", "Old"])

    async def test_update_list_changes_only_given_fields(self):
        created = await self.storage.lists.create_list(self.user_id, "Horror", description="spooky")
        updated = await self.storage.lists.update_list(created.id, ListPatch.from_mapping({"is_public": True}))
        self.assertTrue(updated.is_public)
        self.assertEqual(updated.name, "Horror")
        self.assertEqual(updated.description, "spooky")

        self.assertIsNone(await self.storage.lists.update_list(2_000_000_001, ListPatch(name="x")))

    async def test_delete_list_cascades_to_items(self):
        media = await self._media()
        created = await self.storage.lists.create_list(self.user_id, "Doomed")
        await self.storage.lists.add_item(created.id, media.id)

        await self.storage.lists.delete_list(created.id)

        self.assertIsNone(await self.storage.lists.get_list_with_items(created.id))
        self.assertIsNone(await self.storage.lists.get_list(created.id))
        self.assertEqual(await self.storage.lists.lists_containing(self.user_id, media.id), [])
        self.assertEqual(await self.storage.lists.recent_items_by_user(self.user_id, limit=10), [])
        # The catalog row survives.
        self.assertIsNotNone(await self.storage.media.get_media(media.id))

    async def test_add_item_duplicate_conflicts(self):
        media = await self._media()
        created = await self.storage.lists.create_list(self.user_id, "Dupes")
        await self.storage.lists.add_item(created.id, media.id)
        with self.assertRaises(ConflictError) as ctx:
            await self.storage.lists.add_item(created.id, media.id, status="watching")
        self.assertIn("item already exists in this list", str(ctx.exception))

        result = await self.storage.lists.get_list_with_items(created.id)
        self.assertEqual(len(result.items), 1)

    async def test_add_item_missing_list_or_media(self):
        media = await self._media()
        with self.assertRaises(NotFoundError):
            await self.storage.lists.add_item(2_000_000_001, media.id)
        created = await self.storage.lists.create_list(self.user_id, "Empty")
        with self.assertRaises(NotFoundError):
            await self.storage.lists.add_item(created.id, 2_000_000_001)

    async def test_add_item_rejects_bad_status(self):
        media = await self._media()
        created = await self.storage.lists.create_list(self.user_id, "Statuses")
        with self.assertRaises(ValidationError):
            await self.storage.lists.add_item(created.id, media.id, status="finished")
        with self.assertRaises(ValidationError):
            await self.storage.lists.add_item(created.id, media.id, seasons_watched=-1)

    async def test_matrix_watchlist_then_watched(self):
        created = await self.storage.lists.create_list(self.user_id, "Classics")
        item = await self.service.add_to_list(
            created.id,
            MediaDraft(external_id=603, kind="movie", title="The Matrix"),
            status="watchlist",
        )
        updated = await self.storage.lists.update_item(item.id, ListItemPatch(status="watched"))
        self.assertEqual(updated.status, "watched")

        result = await self.storage.lists.get_list_with_items(created.id)
        self.assertEqual(len(result.items), 1)
        self.assertEqual(result.items[0].item.status, "watched")
        self.assertEqual(result.items[0].media.title, "The Matrix")

    async def test_update_item_missing_reads_none(self):
        self.assertIsNone(
            await self.storage.lists.update_item(2_000_000_001, ListItemPatch(status="dropped"))
        )

    async def test_viewer_rating_is_global_across_lists(self):
        media = await self._media()
        list_a = await self.storage.lists.create_list(self.user_id, "A")
        list_b = await self.storage.lists.create_list(self.user_id, "B")
        await self.storage.lists.add_item(list_a.id, media.id)
        await self.storage.lists.add_item(list_b.id, media.id)
        await self.storage.watched.add(self.user_id, media.id, rating=7)

        for list_id in (list_a.id, list_b.id):
            result = await self.storage.lists.get_list_with_items(list_id, viewer_user_id=self.user_id)
            self.assertEqual([v.viewer_rating for v in result.items], [7])

        anonymous = await self.storage.lists.get_list_with_items(list_a.id)
        self.assertEqual([v.viewer_rating for v in anonymous.items], [None])
        stranger = await self.storage.lists.get_list_with_items(list_a.id, viewer_user_id=self.other_user_id)
        self.assertEqual([v.viewer_rating for v in stranger.items], [None])

    async def test_list_items_in_insertion_order(self):
        created = await self.storage.lists.create_list(self.user_id, "Ordered")
        titles = ["One", "Two", "Three"]
        for title in titles:
            media = await self._media(title)
            await self.storage.lists.add_item(created.id, media.id)
        result = await self.storage.lists.get_list_with_items(created.id)
        self.assertEqual([v.media.title for v in result.items], titles)

    async def test_remove_item_is_idempotent(self):
        media = await self._media()
        created = await self.storage.lists.create_list(self.user_id, "Short")
        await self.storage.lists.add_item(created.id, media.id)
        await self.storage.lists.remove_item(created.id, media.id)
        await self.storage.lists.remove_item(created.id, media.id)
        result = await self.storage.lists.get_list_with_items(created.id)
        self.assertEqual(result.items, ())

    async def test_lists_containing(self):
        media = await self._media()
        mine = await self.storage.lists.create_list(self.user_id, "Mine")
        await self.storage.lists.create_list(self.user_id, "Without")
        theirs = await self.storage.lists.create_list(self.other_user_id, "Theirs")
        await self.storage.lists.add_item(mine.id, media.id)
        await self.storage.lists.add_item(theirs.id, media.id)
        self.assertEqual(await self.storage.lists.lists_containing(self.user_id, media.id), [mine.id])

    # ----- stats / recent activity -----

    async def test_stats_with_nothing_watched(self):
        stats = await self.stats.get_user_stats(self.user_id)
        self.assertEqual(stats.movies_watched, 0)
        self.assertEqual(stats.tv_shows_watched, 0)
        self.assertEqual(stats.average_rating, 0.0)
        self.assertEqual(stats.total_watchtime_hours, 0.0)

    async def test_stats_counts_and_watchtime(self):
        movie = await self._media("Challengers", runtime=131)
        show = await self._media("Fallout", kind="tv", runtime=60, episode_count=8)
        unknown = await self._media("Mystery")
        await self.storage.watched.add(self.user_id, movie.id, rating=8)
        await self.storage.watched.add(self.user_id, show.id, rating=9)
        await self.storage.watched.add(self.user_id, unknown.id)

        stats = await self.stats.get_user_stats(self.user_id)
        self.assertEqual(stats.movies_watched, 2)
        self.assertEqual(stats.tv_shows_watched, 1)
        self.assertEqual(stats.average_rating, 8.5)
        # 131 min + 8 x 60 min + 2h fallback
        self.assertEqual(stats.total_watchtime_hours, round(131 / 60 + 8 + 2, 1))

    async def test_recent_activity_is_merged_and_limited(self):
        user_list = await self.storage.lists.create_list(self.user_id, "Recent")
        for i in range(3):
            media = await self._media(f"Watched {i}")
            await self.storage.watched.add(self.user_id, media.id, rating=i)
        for i in range(2):
            media = await self._media(f"Favorite {i}")
            await self.storage.favorites.add(self.user_id, media.id)
        for i in range(3):
            media = await self._media(f"Listed {i}")
            await self.storage.lists.add_item(user_list.id, media.id)

        events = await self.stats.get_recent_activity(self.user_id, limit=5)
        self.assertEqual(len(events), 5)
        stamps = [e.occurred_at for e in events]
        self.assertEqual(stamps, sorted(stamps, reverse=True))
        listed = [e for e in events if e.kind == "added_to_list"]
        self.assertTrue(all(e.list_id == user_list.id and e.list_name == "Recent" for e in listed))

        everything = await self.stats.get_recent_activity(self.user_id, limit=50)
        self.assertEqual(len(everything), 8)

    async def test_recent_activity_rejects_bad_limit(self):
        with self.assertRaises(ValidationError):
            await self.stats.get_recent_activity(self.user_id, limit=0)

    # ----- users -----

    async def test_sync_user_is_insert_or_return(self):
        first = await self.storage.users.sync_user(self.user_id, f"{self.user_id}@Example.com", display_name="Someone")
        again = await self.storage.users.sync_user(self.user_id, f"{self.user_id}@Example.com", display_name="Renamed")
        self.assertEqual(first.id, again.id)
        self.assertEqual(again.display_name, "Someone")

        by_email = await self.storage.users.get_user_by_email(f"{self.user_id}@example.com".lower())
        self.assertEqual(by_email.id, self.user_id)

    async def test_update_profile(self):
        await self.storage.users.sync_user(self.user_id, f"{self.user_id}@example.com")
        updated = await self.storage.users.update_profile(self.user_id, photo_url="https://img/x.png")
        self.assertEqual(updated.photo_url, "https://img/x.png")
        self.assertIsNone(await self.storage.users.update_profile(self.other_user_id, display_name="x"))
        self.assertIsNone(await self.storage.users.get_user(self.other_user_id))

    async def test_sync_user_requires_identity(self):
        with self.assertRaises(ValidationError):
            await self.storage.users.sync_user("", "a@b.c")
