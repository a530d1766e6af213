"""Generic in-memory key/value store with per-entry TTL.

Expiry is lazy: an expired entry stays in the table until a read touches it
(`get`, `has`, `keys`) or `clean_expired` sweeps the whole table. No
background thread is involved.

Example:
    >>> cache: TTLCache[str] = TTLCache(default_ttl=60)
    >>> cache.set("procedure_42", "payload")
    >>> cache.get("procedure_42")
    'payload'
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Iterator

T = TypeVar("T")

# Fallback TTL in seconds
DEFAULT_TTL = 3600.0

Clock = Callable[[], float]


@dataclass(slots=True, frozen=True)
class CacheEntry(Generic[T]):
    """A cached value with its absolute expiry timestamp (epoch seconds)."""
    value: T
    expires_at: float

    def alive(self, now: float) -> bool:
        return now < self.expires_at


class TTLCache(Generic[T]):
    """Thread-safe expiring associative store.

    Args:
        default_ttl: TTL in seconds used when `set` is called without one
        clock: Callable returning the current epoch time (injectable for tests)

    `size` counts raw entries including expired ones not yet evicted, while
    `keys()` only yields live keys. The two can disagree until a sweep.
    """

    __slots__ = ("_entries", "_default_ttl", "_clock", "_lock")

    def __init__(self, default_ttl: float = DEFAULT_TTL, *, clock: Clock = time.time) -> None:
        self._entries: dict[str, CacheEntry[T]] = {}
        self._default_ttl = default_ttl
        self._clock = clock
        self._lock = threading.RLock()

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    def set(self, key: str, value: T, ttl: float | None = None) -> None:
        """Store value under key, replacing any existing entry.

        A ttl of zero or less stores an entry that is already expired.
        """
        expires_at = self._clock() + (self._default_ttl if ttl is None else ttl)
        with self._lock:
            self._entries[key] = CacheEntry(value=value, expires_at=expires_at)

    def get(self, key: str) -> T | None:
        """Return the live value for key, or None. Evicts the entry if expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not entry.alive(self._clock()):
                del self._entries[key]
                return None
            return entry.value

    def has(self, key: str) -> bool:
        """Same visibility rule and eviction as `get`."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if not entry.alive(self._clock()):
                del self._entries[key]
                return False
            return True

    __contains__ = has

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> Iterator[str]:
        """Iterate over a snapshot of live keys, evicting expired ones found."""
        with self._lock:
            now = self._clock()
            live: list[str] = []
            for key, entry in list(self._entries.items()):
                if entry.alive(now):
                    live.append(key)
                else:
                    del self._entries[key]
        return iter(live)

    @property
    def size(self) -> int:
        """Raw entry count, including expired entries not yet evicted."""
        with self._lock:
            return len(self._entries)

    def clean_expired(self) -> int:
        """Remove every expired entry. Returns the number removed."""
        with self._lock:
            now = self._clock()
            expired = [k for k, v in self._entries.items() if not v.alive(now)]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def stats(self) -> dict[str, object]:
        """Cache statistics for monitoring (does not evict)."""
        with self._lock:
            now = self._clock()
            expired = sum(1 for v in self._entries.values() if not v.alive(now))
            return {
                "total_entries": len(self._entries),
                "expired_entries": expired,
                "active_entries": len(self._entries) - expired,
                "default_ttl": self._default_ttl,
            }
