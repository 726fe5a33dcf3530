from application.library.service import LibraryService
from application.library.stats_service import StatsService, merge_recent
from application.library.storage import LibraryStorage

__all__ = ["LibraryService", "LibraryStorage", "StatsService", "merge_recent"]
