"""In-process read cache for leave list projections.

Each entry carries its own ``ExpiryPolicy``: a hard deadline counted from
population and, optionally, an idle timeout counted from the last hit. An
entry is gone as soon as either one passes. Invalidation removes the entry
immediately, so the next read is a guaranteed miss.

The cache is shared by concurrent workers and guards its map with a lock.
Loading from the store always happens outside the lock.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.config import Settings

logger = logging.getLogger(__name__)

MANAGER_PENDING_KEY = "leave:pending-for-managers"
ALL_LEAVES_KEY = "leave:all"


def employee_leaves_key(employee_id: str) -> str:
    """Cache key for one employee's request list."""
    return f"leave:employee:{employee_id}"


@dataclass(frozen=True)
class ExpiryPolicy:
    """Absolute lifetime plus an optional sliding (idle) window, in seconds."""

    absolute: float
    sliding: float | None = None

    def is_expired(self, entry: CacheEntry, now: float) -> bool:
        if now - entry.created_at > self.absolute:
            return True
        return self.sliding is not None and now - entry.last_access > self.sliding


@dataclass
class CacheEntry:
    value: Any
    policy: ExpiryPolicy
    created_at: float
    last_access: float


@dataclass(frozen=True)
class CachePolicies:
    """Expiry policy per key family."""

    employee: ExpiryPolicy
    manager_pending: ExpiryPolicy
    all_leaves: ExpiryPolicy

    @classmethod
    def from_settings(cls, settings: Settings) -> CachePolicies:
        global_policy = ExpiryPolicy(absolute=settings.global_cache_absolute_seconds)
        return cls(
            employee=ExpiryPolicy(
                absolute=settings.employee_cache_absolute_seconds,
                sliding=settings.employee_cache_sliding_seconds,
            ),
            manager_pending=global_policy,
            all_leaves=global_policy,
        )


DEFAULT_POLICIES = CachePolicies(
    employee=ExpiryPolicy(absolute=300, sliding=60),
    manager_pending=ExpiryPolicy(absolute=120),
    all_leaves=ExpiryPolicy(absolute=120),
)


class ReadCache:
    """Thread-safe key/value cache with per-entry expiry policies.

    ``generation()`` is a counter bumped by every invalidation. A reader takes
    it before loading from the store and passes it back to ``set()``; if an
    invalidation happened in between, the load may predate the write that
    caused it and is not stored.

    Expired entries are dropped when read, and swept from the whole map at
    most once per ``sweep_interval`` seconds on ``set()``.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, sweep_interval: float = 60.0) -> None:
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._entries: dict[str, CacheEntry] = {}
        self._generation = 0
        self._last_sweep = clock()
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None on a miss. A hit refreshes the idle window."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            now = self._clock()
            if entry.policy.is_expired(entry, now):
                del self._entries[key]
                logger.debug("Cache entry %s expired", key)
                return None
            entry.last_access = now
            return entry.value

    def generation(self) -> int:
        with self._lock:
            return self._generation

    def set(self, key: str, value: Any, policy: ExpiryPolicy, *, generation: int | None = None) -> bool:
        """Store ``value`` under ``key``. Returns False if refused as stale."""
        now = self._clock()
        with self._lock:
            if generation is not None and generation != self._generation:
                logger.debug("Cache write for %s skipped: invalidated during load", key)
                return False
            if now - self._last_sweep >= self._sweep_interval:
                self._sweep(now)
            self._entries[key] = CacheEntry(value=value, policy=policy, created_at=now, last_access=now)
            return True

    def invalidate(self, *keys: str) -> None:
        """Remove the given keys now. Missing keys are ignored."""
        with self._lock:
            self._generation += 1
            for key in keys:
                self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._entries.clear()

    def _sweep(self, now: float) -> None:
        # Caller holds the lock.
        expired = [key for key, entry in self._entries.items() if entry.policy.is_expired(entry, now)]
        for key in expired:
            del self._entries[key]
        self._last_sweep = now
        if expired:
            logger.debug("Swept %d expired cache entries", len(expired))

    def __contains__(self, key: object) -> bool:
        # Does not count as an access.
        with self._lock:
            entry = self._entries.get(key)  # type: ignore[call-overload]
            return entry is not None and not entry.policy.is_expired(entry, self._clock())

    def __len__(self) -> int:
        """Number of live entries. Expired ones are swept first."""
        with self._lock:
            self._sweep(self._clock())
            return len(self._entries)
