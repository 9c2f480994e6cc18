"""In-process response cache with single-flight de-duplication."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, TypeVar

from ...config import settings
from ...models.domain import CacheEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResponseCache:
    """Short-lived fingerprint -> CacheEntry store.

    Expired entries are evicted lazily when they are looked up; there is no
    background sweep. ``single_flight`` keeps at most one fetch in flight per
    fingerprint.
    """

    def __init__(
        self,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.route_cache_ttl_seconds
        if self.ttl_seconds < 0:
            raise ValueError("Cache TTL must be non-negative.")
        self.clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._inflight: dict[str, asyncio.Future] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, fingerprint: str) -> bool:
        return self.get(fingerprint) is not None

    def get(self, fingerprint: str) -> CacheEntry | None:
        entry = self._entries.get(fingerprint)
        if entry is None:
            return None
        age = self.clock() - entry.cached_at
        if age >= self.ttl_seconds:
            logger.debug(f"Cache entry {fingerprint} expired after {age:.1f}s")
            del self._entries[fingerprint]
            return None
        return entry

    def put(self, fingerprint: str, entry: CacheEntry) -> None:
        self._entries[fingerprint] = entry

    def invalidate(self, fingerprint: str) -> None:
        self._entries.pop(fingerprint, None)

    def clear(self) -> None:
        self._entries.clear()

    def is_in_flight(self, fingerprint: str) -> bool:
        return fingerprint in self._inflight

    async def single_flight(self, fingerprint: str, fetch: Callable[[], Awaitable[T]]) -> T:
        """Run ``fetch`` unless an identical fetch is already running.

        The fetch runs as its own task, so every concurrent caller for the same
        fingerprint receives the same value or the same exception, and a caller
        that is cancelled while waiting does not cancel the fetch for the others.
        """
        task = self._inflight.get(fingerprint)
        if task is None:
            task = asyncio.ensure_future(fetch())
            self._inflight[fingerprint] = task
            task.add_done_callback(lambda done: self._release(fingerprint, done))
        else:
            logger.debug(f"Joining in-flight fetch for {fingerprint}")
        return await asyncio.shield(task)

    def _release(self, fingerprint: str, task: asyncio.Future) -> None:
        if self._inflight.get(fingerprint) is task:
            del self._inflight[fingerprint]
        if not task.cancelled():
            # Retrieve the exception so a fetch whose waiters all left is not reported as unhandled.
            task.exception()
