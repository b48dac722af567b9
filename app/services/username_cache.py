"""Time-boxed memo of usernames by user id.

Navigation needs the caller's username on most requests; this avoids a
profile lookup each time.  Entries expire after ``ttl_seconds`` by clock,
and ``invalidate`` drops an entry when that user's profile is saved.
"""

from __future__ import annotations

import threading
import time
from typing import Callable
from uuid import UUID

from app.core.config import settings

UsernameLoader = Callable[[str], str | None]


class UsernameCache:
    """Thread-safe TTL cache mapping user id -> username."""

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[str | None, float]] = {}
        self._lock = threading.Lock()

    def get(self, user_id: UUID | str, loader: UsernameLoader) -> str | None:
        """Return the cached username, calling *loader* on miss or expiry."""
        key = str(user_id)
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and now - entry[1] < self.ttl_seconds:
                return entry[0]

        username = loader(key)
        with self._lock:
            self._entries[key] = (username, self._clock())
        return username

    def invalidate(self, user_id: UUID | str) -> None:
        with self._lock:
            self._entries.pop(str(user_id), None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_cache: UsernameCache | None = None


def get_username_cache() -> UsernameCache:
    """Process-wide cache; also used as a FastAPI dependency."""
    global _cache
    if _cache is None:
        _cache = UsernameCache(ttl_seconds=settings.USERNAME_CACHE_TTL_SECONDS)
    return _cache
