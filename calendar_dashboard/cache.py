"""Per-user in-memory cache for normalized events and summaries.

Each user has one entry holding both the event list and the summary, and a
single expiry shared by the two. Storing either kind re-arms that expiry, so
a fresh summary keeps an older event list alive until the new deadline.

No locking: handlers run on one event loop and never await while touching
the cache. Concurrent misses for the same user each go to Google.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Literal

log = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 60

CacheKind = Literal["events", "summary"]


@dataclass
class CacheEntry:
    events: Any = None
    summary: Any = None
    expiry: float = 0.0


class EventCache:
    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, email: str, kind: CacheKind) -> Any:
        """Return the cached value, or ``None`` on a miss or after expiry."""
        entry = self._entries.get(email)
        if entry is None:
            return None
        value = getattr(entry, kind)
        if value is None or self._clock() >= entry.expiry:
            return None
        return value

    def put(self, email: str, kind: CacheKind, value: Any, ttl: float = CACHE_TTL_SECONDS) -> None:
        now = self._clock()
        self.purge_expired(now)
        entry = self._entries.setdefault(email, CacheEntry())
        setattr(entry, kind, value)
        entry.expiry = now + ttl

    def invalidate(self, email: str) -> None:
        self._entries[email] = CacheEntry()
        log.debug("Cache invalidated for %s", email)

    def purge_expired(self, now: float | None = None) -> int:
        """Drop entries past their expiry; returns how many were removed."""
        if now is None:
            now = self._clock()
        stale = [email for email, entry in self._entries.items() if now >= entry.expiry]
        for email in stale:
            del self._entries[email]
        return len(stale)

    def __len__(self) -> int:
        return len(self._entries)
