import sys
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from application.library import LibraryService, merge_recent  # noqa: E402
from domain.library import (  # noqa: E402
    ActivityEvent,
    ConflictError,
    MediaDraft,
    MediaItem,
    NotFoundError,
    ValidationError,
)
from infrastructure.library import build_library_storage  # noqa: E402


class _RacingMediaStore:
    """First lookup misses, insert loses the race, second lookup finds the winner."""

    def __init__(self) -> None:
        self.winner = MediaItem(id=42, external_id=603, kind="movie", title="The Matrix")
        self.lookups = 0
        self.creates = 0

    async def get_media(self, media_id):
        return self.winner if media_id == 42 else None

    async def get_media_by_external_id(self, external_id, kind):
        self.lookups += 1
        return None if self.lookups == 1 else self.winner

    async def create_media(self, draft):
        self.creates += 1
        raise ConflictError("media movie/603 already exists")


class _AlwaysConflictingMediaStore(_RacingMediaStore):
    async def get_media_by_external_id(self, external_id, kind):
        self.lookups += 1
        return None


def _event(kind: str, minutes: int) -> ActivityEvent:
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    media = MediaItem(id=minutes, external_id=minutes + 1, kind="movie", title=f"{kind}-{minutes}")
    return ActivityEvent(kind=kind, media=media, occurred_at=base + timedelta(minutes=minutes))


class TestLibraryService(unittest.IsolatedAsyncioTestCase):
    async def test_resolve_media_recovers_from_concurrent_insert(self):
        storage = build_library_storage("memory")
        racing = _RacingMediaStore()
        storage.media = racing
        service = LibraryService(storage=storage)

        media = await service.resolve_media(MediaDraft(external_id=603, kind="movie", title="The Matrix"))

        self.assertEqual(media.id, 42)
        self.assertEqual(racing.creates, 1)
        self.assertEqual(racing.lookups, 2)

    async def test_resolve_media_reraises_when_conflict_row_is_missing(self):
        storage = build_library_storage("memory")
        storage.media = _AlwaysConflictingMediaStore()
        service = LibraryService(storage=storage)

        with self.assertRaises(ConflictError):
            await service.resolve_media(MediaDraft(external_id=603, kind="movie", title="The Matrix"))

    async def test_resolve_media_validates_before_lookup(self):
        storage = build_library_storage("memory")
        racing = _RacingMediaStore()
        storage.media = racing
        service = LibraryService(storage=storage)

        with self.assertRaises(ValidationError):
            await service.resolve_media(MediaDraft(external_id=603, kind="anime", title="x"))
        self.assertEqual(racing.lookups, 0)

    async def test_add_to_list_requires_existing_list(self):
        storage = build_library_storage("memory")
        service = LibraryService(storage=storage)

        with self.assertRaises(NotFoundError):
            await service.add_to_list(99, MediaDraft(external_id=603, kind="movie", title="The Matrix"))
        # Nothing was written to the catalog for a missing list.
        self.assertIsNone(await storage.media.get_media_by_external_id(603, "movie"))

    async def test_mark_watched_rejects_bad_rating_without_touching_row(self):
        storage = build_library_storage("memory")
        service = LibraryService(storage=storage)
        media = await service.resolve_media(MediaDraft(external_id=1396, kind="tv", title="Fallout"))
        await service.mark_watched("u1", media.id, rating=6)

        with self.assertRaises(ValidationError):
            await service.mark_watched("u1", media.id, rating=42)
        item = await storage.watched.get("u1", media.id)
        self.assertEqual(item.rating, 6)


class TestMergeRecent(unittest.TestCase):
    def test_newest_first_across_sources(self):
        watched = [_event("watched", 1), _event("watched", 5)]
        favorites = [_event("favorited", 3)]
        listed = [_event("added_to_list", 4), _event("added_to_list", 2)]

        merged = merge_recent([watched, favorites, listed], limit=10)

        self.assertEqual([e.media.id for e in merged], [5, 4, 3, 2, 1])

    def test_truncates_to_limit(self):
        events = [_event("watched", m) for m in range(10)]
        merged = merge_recent([events, []], limit=5)
        self.assertEqual([e.media.id for e in merged], [9, 8, 7, 6, 5])

    def test_naive_timestamps_are_treated_as_utc(self):
        naive = ActivityEvent(
            kind="watched",
            media=MediaItem(id=100, external_id=100, kind="movie", title="naive"),
            occurred_at=datetime(2026, 1, 1, 0, 30),
        )
        merged = merge_recent([[naive], [_event("favorited", 10), _event("favorited", 40)]], limit=3)
        self.assertEqual([e.media.id for e in merged], [40, 100, 10])


if __name__ == "__main__":
    unittest.main()
