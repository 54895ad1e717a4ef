import logging
import time
from typing import Awaitable, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

CountCacheKey = Tuple[int, str, str]

ALL_BOOKS = "all"
DEFAULT_TTL_SECONDS = 5 * 60


class SearchCountCache:
    """
    Remembers total match counts for keyword searches so that paging through
    results does not rescan the verse table on every request.

    Entries are keyed by (version id, normalized term, book filter) and are
    fresh for `ttl_seconds`. Expired entries are swept on every access. There
    is no lock: two requests may recompute the same key concurrently and the
    last write wins.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[CountCacheKey, Tuple[int, float]] = {}

    @staticmethod
    def make_key(version_id: int, term: str, book: Optional[str] = None) -> CountCacheKey:
        return (version_id, term.strip().lower(), book or ALL_BOOKS)

    async def get_count(self, key: CountCacheKey, compute: Callable[[], Awaitable[int]]) -> int:
        now = self._clock()
        self._evict_expired(now)

        entry = self._entries.get(key)
        if entry is not None and now - entry[1] < self.ttl_seconds:
            return entry[0]

        count = await compute()
        self._entries[key] = (count, self._clock())
        logger.debug("Cached count %s for %s", count, key)
        return count

    def _evict_expired(self, now: float) -> None:
        expired = [key for key, (_, stored_at) in self._entries.items() if now - stored_at > self.ttl_seconds]
        for key in expired:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key) -> bool:
        return key in self._entries
