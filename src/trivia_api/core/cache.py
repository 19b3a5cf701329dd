# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""In-process TTL cache for question query results.

Entries expire after a fixed duration and are purged lazily on lookup or by
the periodic sweep started with :meth:`TTLCache.start_sweeper`. There is no
size cap or LRU eviction: the keyspace is bounded by the number of distinct
filter combinations a client can request.
"""

import asyncio
import contextlib
import hashlib
import json
import logging
import time
from collections.abc import Callable
from typing import Any

from attrs import field, frozen
from beartype import beartype

logger = logging.getLogger(__name__)


@frozen
class CacheEntry:
    """Cached value with the monotonic time it was stored at."""

    value: Any = field()
    stored_at: float = field()


@frozen
class CacheKey:
    """Immutable cache key derived from normalized request parameters."""

    prefix: str = field()
    data: str = field()

    @classmethod
    @beartype
    def from_params(cls, prefix: str, params: dict[str, Any]) -> "CacheKey":
        """Create a cache key from request parameters.

        ``None`` values are dropped so that an omitted filter and an explicit
        empty filter map to the same key.
        """
        normalized = {k: v for k, v in params.items() if v is not None}
        # Sort keys for consistent hashing
        payload = json.dumps(normalized, sort_keys=True, default=str)
        digest = hashlib.sha256(payload.encode()).hexdigest()[:32]
        return cls(prefix=prefix, data=digest)

    @property
    def key(self) -> str:
        """Get formatted cache key."""
        return f"{self.prefix}:{self.data}"


@frozen
class CacheStats:
    """Cache counters snapshot."""

    entries: int = field()
    hits: int = field()
    misses: int = field()
    expired: int = field()
    ttl_seconds: float = field()

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class TTLCache:
    """Key/value store whose entries expire ``ttl_seconds`` after being set."""

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._expired = 0
        self._sweeper_task: asyncio.Task[None] | None = None

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    @beartype
    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous entry."""
        self._entries[key] = CacheEntry(value=value, stored_at=self._clock())

    @beartype
    def get(self, key: str) -> Any | None:
        """Return the live value for ``key`` or ``None``.

        A stale entry is deleted as a side effect, so it can never be
        returned by a later lookup.
        """
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if self._clock() - entry.stored_at > self._ttl:
            del self._entries[key]
            self._expired += 1
            self._misses += 1
            return None

        self._hits += 1
        return entry.value

    @beartype
    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    @beartype
    def clear(self) -> None:
        self._entries.clear()

    @beartype
    def cleanup(self) -> int:
        """Remove every expired entry and return how many were removed."""
        now = self._clock()
        stale = [
            key
            for key, entry in self._entries.items()
            if now - entry.stored_at > self._ttl
        ]
        for key in stale:
            del self._entries[key]
        self._expired += len(stale)
        return len(stale)

    @beartype
    def stats(self) -> CacheStats:
        return CacheStats(
            entries=len(self._entries),
            hits=self._hits,
            misses=self._misses,
            expired=self._expired,
            ttl_seconds=self._ttl,
        )

    async def start_sweeper(self, interval_seconds: float) -> None:
        """Start the background task that periodically calls :meth:`cleanup`."""
        if self._sweeper_task is not None and not self._sweeper_task.done():
            return
        self._sweeper_task = asyncio.create_task(self._sweep_loop(interval_seconds))

    async def stop_sweeper(self) -> None:
        """Stop the background sweep task."""
        task = self._sweeper_task
        self._sweeper_task = None
        if task and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _sweep_loop(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            removed = self.cleanup()
            if removed:
                logger.debug(f"Cache sweep removed {removed} expired entries")
