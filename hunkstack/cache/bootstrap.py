"""Bootstrap cache for compose sessions.

Contains:
- BootstrapCache: Memoizing async store with an access TTL
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Hashable, Optional, TypeVar

from hunkstack.config import BOOTSTRAP_CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _CacheEntry:
    future: "asyncio.Future[Any]"
    last_access: float


class BootstrapCache(Generic[T]):
    """Memoize the result of loading a session, keyed by session identity.

    An entry expires ttl_seconds after it was last read. Concurrent gets for
    the same key share one factory call. A factory that raises leaves no
    entry behind, so the next get retries.
    """

    def __init__(
        self,
        ttl_seconds: float = BOOTSTRAP_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, _CacheEntry] = {}

    async def get(self, key: Hashable, factory: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value for key, calling factory on a miss."""
        now = self._clock()
        self._evict_expired(now)

        entry = self._entries.get(key)
        if entry is not None:
            logger.debug("Bootstrap cache hit for %s", key)
            entry.last_access = now
        else:
            logger.debug("Bootstrap cache miss for %s", key)
            entry = _CacheEntry(future=asyncio.ensure_future(factory()), last_access=now)
            self._entries[key] = entry

        try:
            return await asyncio.shield(entry.future)
        except BaseException:
            if entry.future.done() and self._entries.get(key) is entry:
                del self._entries[key]
            raise

    def invalidate(self, key: Optional[Hashable] = None) -> None:
        """Drop the entry for key, or every entry when key is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __contains__(self, key: Hashable) -> bool:
        entry = self._entries.get(key)
        return entry is not None and self._clock() - entry.last_access <= self.ttl_seconds

    def _evict_expired(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if now - e.last_access > self.ttl_seconds]
        for key in expired:
            del self._entries[key]
