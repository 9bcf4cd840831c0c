# -*- coding: utf-8 -*-
# @Author: yaccii
# @Description: In-memory TTL cache over async producers (process-local, no persistence).

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

DEFAULT_TTL_SECONDS = 300.0


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class MemoryCache:
    """Key-scoped TTL memoization for async producers.

    - Entries are replaced on refresh, never mutated.
    - Expired entries are evicted lazily on access; there is no background sweep.
    - With ``coalesce=True`` concurrent misses for one key share a single in-flight
      producer call. ``coalesce=False`` lets every concurrent miss call the producer.

    The key set is unbounded; callers use a small fixed set of names.
    """

    def __init__(
        self,
        *,
        default_ttl_seconds: float = DEFAULT_TTL_SECONDS,
        coalesce: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_ttl = float(default_ttl_seconds)
        self._coalesce = bool(coalesce)
        self._clock = clock
        self._store: Dict[str, CacheEntry] = {}
        self._inflight: Dict[str, asyncio.Task] = {}

    @property
    def default_ttl_seconds(self) -> float:
        return self._default_ttl

    def _live_entry(self, key: str) -> Optional[CacheEntry]:
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._store[key]
            return None
        return entry

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._live_entry(key)
        if entry is None:
            return default
        return entry.value

    def contains(self, key: str) -> bool:
        return self._live_entry(key) is not None

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> Any:
        ttl = self._default_ttl if ttl_seconds is None else float(ttl_seconds)
        self._store[key] = CacheEntry(key=key, value=value, expires_at=self._clock() + ttl)
        return value

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()

    async def wrap(
        self,
        key: str,
        producer: Callable[[], Awaitable[Any]],
        ttl_seconds: Optional[float] = None,
    ) -> Any:
        """Return the cached value, or run ``producer`` once and cache its result.

        Producer exceptions propagate to the caller(s) and nothing is stored.
        """

        entry = self._live_entry(key)
        if entry is not None:
            return entry.value

        if not self._coalesce:
            value = await producer()
            return self.set(key, value, ttl_seconds)

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._produce(key, producer, ttl_seconds))
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._forget(k, t))

        # shield: one cancelled waiter must not cancel the shared producer
        return await asyncio.shield(task)

    async def _produce(self, key: str, producer: Callable[[], Awaitable[Any]], ttl_seconds: Optional[float]) -> Any:
        value = await producer()
        return self.set(key, value, ttl_seconds)

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            # mark retrieved; waiters (if any) re-raise it themselves
            task.exception()

    def stats(self) -> Dict[str, Any]:
        return {
            "keys": len(self._store),
            "ttl_seconds": self._default_ttl,
            "coalesce": self._coalesce,
            "inflight": len(self._inflight),
        }
