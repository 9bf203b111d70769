"""In-memory expiring caches with stale reads and in-flight deduplication."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """An immutable cached value with its creation and expiry times."""

    value: T
    created_at: datetime
    expires_at: datetime

    def is_live(self, now: datetime) -> bool:
        return self.expires_at > now


class ExpiringCache(Generic[T]):
    """Key/value store whose entries expire but are kept until pruned.

    Expired entries stay readable through :meth:`get` so callers can fall
    back to them; :meth:`prune` drops them. Writes replace the whole entry.
    """

    def __init__(self, ttl: timedelta) -> None:
        self.ttl = ttl
        self._entries: dict[Hashable, CacheEntry[T]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: Hashable) -> CacheEntry[T] | None:
        """Return the entry for ``key`` whether live or expired."""
        return self._entries.get(key)

    def get_live(self, key: Hashable, now: datetime) -> CacheEntry[T] | None:
        entry = self._entries.get(key)
        if entry is not None and entry.is_live(now):
            return entry
        return None

    def put(self, key: Hashable, value: T, now: datetime) -> CacheEntry[T]:
        entry = CacheEntry(value=value, created_at=now, expires_at=now + self.ttl)
        self._entries[key] = entry
        return entry

    def prune(self, now: datetime) -> int:
        """Remove expired entries. Returns how many were removed."""
        expired = [key for key, entry in self._entries.items() if not entry.is_live(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Pruned %d expired cache entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()


class InflightRequests(Generic[T]):
    """Share one running computation among concurrent callers of a key."""

    def __init__(self) -> None:
        self._tasks: dict[Hashable, asyncio.Task[T]] = {}

    def __contains__(self, key: Hashable) -> bool:
        return key in self._tasks

    async def run(self, key: Hashable, factory: Callable[[], Awaitable[T]]) -> T:
        """Await the running task for ``key``, starting it if there is none."""
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._tasks[key] = task
            task.add_done_callback(lambda _: self._tasks.pop(key, None))
        else:
            logger.debug("Joining in-flight request for %s", key)
        return await asyncio.shield(task)
