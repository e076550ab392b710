"""Bounded TTL cache with FIFO eviction and a background sweeper."""

from __future__ import annotations

import dataclasses
import hashlib
import threading
import time
from dataclasses import dataclass
from typing import Any, Optional

from logs import get_logger

DEFAULT_MAX_ENTRIES = 1000
DEFAULT_TTL_SECONDS = 300.0  # 5 minutes
SWEEP_INTERVAL_SECONDS = 60.0

logger = get_logger(__name__)


class CacheKeyError(TypeError):
    """Cache key parts could not be encoded."""


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time snapshot of a TTLCache."""

    total_items: int
    max_entries: int
    default_ttl: float
    oldest_item_age: float = 0.0
    newest_item_age: float = 0.0

    def to_dict(self) -> dict:
        """Convert to plain dictionary."""
        return dataclasses.asdict(self)


@dataclass
class _Entry:
    value: Any
    expires_at: float
    inserted_at: float


class _RWLock:
    """Many readers or one writer. New readers queue behind a waiting writer."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writing or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writing or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writing = True

    def release_write(self) -> None:
        with self._cond:
            self._writing = False
            self._cond.notify_all()


class _ReadGuard:
    def __init__(self, lock: _RWLock) -> None:
        self._lock = lock

    def __enter__(self) -> None:
        self._lock.acquire_read()

    def __exit__(self, *exc: object) -> None:
        self._lock.release_read()


class _WriteGuard:
    def __init__(self, lock: _RWLock) -> None:
        self._lock = lock

    def __enter__(self) -> None:
        self._lock.acquire_write()

    def __exit__(self, *exc: object) -> None:
        self._lock.release_write()


class TTLCache:
    """Thread-safe in-memory cache with per-entry TTL and a hard size bound.

    When full, inserting a new key evicts the entry that was inserted first
    (FIFO, not LRU: reads never refresh an entry). Expired entries are hidden
    from ``get`` immediately and physically removed by a sweeper thread every
    ``sweep_interval`` seconds. Call ``close()`` (or use the cache as a
    context manager) to stop the sweeper.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        sweep_interval: float = SWEEP_INTERVAL_SECONDS,
    ) -> None:
        if isinstance(max_entries, bool) or not isinstance(max_entries, int) or max_entries <= 0:
            raise ValueError(f"max_entries must be a positive integer, got {max_entries!r}")
        if default_ttl <= 0:
            raise ValueError(f"default_ttl must be positive, got {default_ttl!r}")
        if sweep_interval <= 0:
            raise ValueError(f"sweep_interval must be positive, got {sweep_interval!r}")

        self._max_entries = max_entries
        self._default_ttl = float(default_ttl)
        self._store: dict[str, _Entry] = {}
        self._lock = _RWLock()
        self._stopped = threading.Event()
        self._sweeper = threading.Thread(
            target=self._sweep_loop,
            args=(sweep_interval,),
            name="ttlcache-sweeper",
            daemon=True,
        )
        self._sweeper.start()

    @property
    def max_entries(self) -> int:
        return self._max_entries

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    def get(self, key: str) -> tuple[Optional[Any], bool]:
        """Return ``(value, True)`` if *key* is present and unexpired, else ``(None, False)``."""
        with _ReadGuard(self._lock):
            entry = self._store.get(key)
            if entry is None:
                return None, False
            if time.monotonic() >= entry.expires_at:
                return None, False
            return entry.value, True

    def set(self, key: str, value: Any) -> None:
        """Store *value* under *key* with the default TTL."""
        self.set_with_ttl(key, value, self._default_ttl)

    def set_with_ttl(self, key: str, value: Any, ttl: float) -> None:
        """Store *value* under *key* for *ttl* seconds.

        A non-positive *ttl* stores an entry that is already expired.
        """
        with _WriteGuard(self._lock):
            if key in self._store:
                # re-insert at the end so iteration order tracks insertion time
                del self._store[key]
            elif len(self._store) >= self._max_entries:
                self._evict_oldest()
            now = time.monotonic()
            self._store[key] = _Entry(value=value, expires_at=now + ttl, inserted_at=now)

    def delete(self, key: str) -> None:
        """Remove *key* if present."""
        with _WriteGuard(self._lock):
            self._store.pop(key, None)

    def clear(self) -> None:
        """Remove every entry."""
        with _WriteGuard(self._lock):
            self._store = {}

    def purge_expired(self) -> int:
        """Physically remove expired entries. Returns how many were removed."""
        with _WriteGuard(self._lock):
            now = time.monotonic()
            expired = [k for k, e in self._store.items() if now >= e.expires_at]
            for k in expired:
                del self._store[k]
        if expired:
            logger.debug("swept %d expired cache entries", len(expired))
        return len(expired)

    def get_stats(self) -> CacheStats:
        """Snapshot of size, limits and the ages of the oldest/newest entries."""
        with _ReadGuard(self._lock):
            stats = CacheStats(
                total_items=len(self._store),
                max_entries=self._max_entries,
                default_ttl=self._default_ttl,
            )
            if not self._store:
                return stats
            now = time.monotonic()
            inserted = [e.inserted_at for e in self._store.values()]
            return dataclasses.replace(
                stats,
                oldest_item_age=now - min(inserted),
                newest_item_age=now - max(inserted),
            )

    def close(self) -> None:
        """Stop the sweeper thread. Safe to call more than once."""
        self._stopped.set()
        if self._sweeper.is_alive() and self._sweeper is not threading.current_thread():
            self._sweeper.join()

    @property
    def closed(self) -> bool:
        return self._stopped.is_set()

    def _evict_oldest(self) -> None:
        """Drop the entry with the smallest insertion time. Must be called under the write lock."""
        if not self._store:
            return
        oldest = min(self._store, key=lambda k: self._store[k].inserted_at)
        del self._store[oldest]
        logger.debug("evicted oldest cache entry %s", oldest)

    def _sweep_loop(self, interval: float) -> None:
        while not self._stopped.wait(interval):
            self.purge_expired()

    def __len__(self) -> int:
        """Physical entry count, including expired entries not yet swept."""
        with _ReadGuard(self._lock):
            return len(self._store)

    def __enter__(self) -> TTLCache:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def _encode_part(part: object) -> str:
    # bool is an int subclass; reject it rather than hashing "True"
    if isinstance(part, bool):
        raise CacheKeyError("bool is not a supported cache key part")
    if isinstance(part, str):
        return part
    if isinstance(part, int):
        return str(part)
    raise CacheKeyError(f"unsupported cache key part type: {type(part).__name__}")


def make_key(*parts: object) -> str:
    """Build a deterministic 64-character hex key from string and integer parts.

    Integers are encoded as decimal text. Each part is length-prefixed so
    ``("ab", "c")`` and ``("a", "bc")`` hash differently.

    Raises:
        CacheKeyError: If no parts are given or a part is not ``str``/``int``.
    """
    if not parts:
        raise CacheKeyError("at least one key part is required")
    h = hashlib.sha256()
    for part in parts:
        text = _encode_part(part)
        h.update(f"{len(text)}:{text}".encode("utf-8"))
    return h.hexdigest()
