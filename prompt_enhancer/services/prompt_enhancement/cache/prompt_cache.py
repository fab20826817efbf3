"""
Cache implementations for enhanced prompts.
"""

import time
import logging
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Dict, Callable, FrozenSet, Any

from ..interfaces import ICacheStore
from ..models import CacheEntry, ComplexityLevel

logger = logging.getLogger(__name__)

DEFAULT_MAX_TRACKED = 10000


class InMemoryCacheStore(ICacheStore):
    """
    In-memory cache store.
    Evicts the oldest entry once max_size is reached.
    """

    def __init__(self, max_size: int = 1000):
        """
        Initialize in-memory store.

        Args:
            max_size: Maximum number of entries
        """
        self.max_size = max_size
        self._entries: Dict[str, CacheEntry] = {}

    async def get(self, key: str) -> Optional[CacheEntry]:
        """Retrieve stored entry"""
        return self._entries.get(key)

    async def put(self, entry: CacheEntry):
        """Store entry"""
        # Evict oldest entries if at capacity
        if entry.key not in self._entries and len(self._entries) >= self.max_size:
            oldest_key = next(iter(self._entries))
            del self._entries[oldest_key]

        self._entries[entry.key] = entry

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def purge_expired(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.utcnow()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    async def invalidate(self, pattern: Optional[str] = None) -> int:
        if pattern is None:
            return await self.purge_expired()
        matched = [
            key for key, entry in self._entries.items()
            if pattern in key or pattern in entry.original_prompt
        ]
        for key in matched:
            del self._entries[key]
        return len(matched)

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True)
class _IndexRecord:
    prompt_hash: str
    project_signature: Optional[str]
    frameworks: FrozenSet[str]
    expires_at: Optional[datetime]


class ContentAddressedCache:
    """
    Best-effort cache in front of an ICacheStore.

    Store failures never reach the caller: reads degrade to a miss and writes
    are dropped. Entries written by this process are indexed so the
    invalidator can mark stale ones; a stale key reads as a miss until it is
    written again or removed from the store. The index holds at most
    max_tracked keys, oldest written dropped first. Expired entries and stale
    keys are cleaned up at most once per cleanup_interval seconds, on write.
    """

    TTL_MULTIPLIERS = {
        ComplexityLevel.SIMPLE: 0.5,
        ComplexityLevel.MEDIUM: 1.0,
        ComplexityLevel.COMPLEX: 2.0,
    }

    def __init__(
        self,
        store: ICacheStore,
        default_ttl: int = 3600,
        max_ttl: int = 86400,
        max_tracked: Optional[int] = None,
        cleanup_interval: int = 300,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize cache.

        Args:
            store: Backing store
            default_ttl: Default time-to-live in seconds
            max_ttl: Upper bound for any entry's time-to-live in seconds
            max_tracked: Index capacity; defaults to the store's max_size when it has one
            cleanup_interval: Minimum seconds between expiry cleanups
            clock: Time source for scheduling cleanups
        """
        self.store = store
        self.default_ttl = default_ttl
        self.max_ttl = max_ttl
        self.max_tracked = max_tracked or getattr(store, "max_size", DEFAULT_MAX_TRACKED)
        self.cleanup_interval = cleanup_interval
        self.clock = clock
        self._last_cleanup = clock()
        self._index: "OrderedDict[str, _IndexRecord]" = OrderedDict()
        self._stale: "OrderedDict[str, Optional[datetime]]" = OrderedDict()
        self._stats = {
            "hits": 0,
            "misses": 0,
            "errors": 0,
            "writes": 0,
            "invalidated": 0,
            "collisions": 0,
            "purged": 0,
        }

    async def get(self, key: str, signature: Optional[str] = None) -> Optional[CacheEntry]:
        """
        Look up an entry.

        Args:
            key: Cache key
            signature: Expected context signature; a mismatch is treated as a collision

        Returns:
            Optional[CacheEntry]: Entry on hit, None on miss
        """
        if key in self._stale:
            logger.debug(f"Cache entry marked stale: {key}")
            self._stats["misses"] += 1
            return None

        try:
            entry = await self.store.get(key)
        except Exception as e:
            logger.warning(f"Cache read failed, treating as miss: {e}")
            self._stats["errors"] += 1
            self._stats["misses"] += 1
            return None

        if entry is None or entry.is_expired():
            logger.debug(f"Cache miss: {key}")
            self._stats["misses"] += 1
            return None

        if signature is not None and entry.context_snapshot != signature:
            logger.warning(f"Cache key collision detected for {key}, treating as miss")
            self._stats["collisions"] += 1
            self._stats["misses"] += 1
            return None

        entry.hits += 1
        self._stats["hits"] += 1
        logger.debug(f"Cache hit: {key} (hits={entry.hits})")

        try:
            await self.store.put(entry)
        except Exception as e:
            logger.debug(f"Could not persist hit count for {key}: {e}")

        return entry

    async def put(self, entry: CacheEntry):
        """
        Store an entry; failures are logged and dropped.

        Args:
            entry: Entry to store
        """
        if entry.expires_at is None:
            entry.expires_at = entry.created_at + timedelta(seconds=self.ttl_for(entry.complexity))

        try:
            await self.store.put(entry)
        except Exception as e:
            logger.warning(f"Cache write failed, dropping entry {entry.key}: {e}")
            self._stats["errors"] += 1
            return

        self._stats["writes"] += 1
        self._stale.pop(entry.key, None)
        self._index[entry.key] = _IndexRecord(
            prompt_hash=entry.key.split("_")[1] if entry.key.count("_") >= 2 else "",
            project_signature=entry.project_signature,
            frameworks=frozenset(entry.framework_detection.detected_frameworks),
            expires_at=entry.expires_at
        )
        self._index.move_to_end(entry.key)
        while len(self._index) > self.max_tracked:
            self._index.popitem(last=False)

        if self.clock() - self._last_cleanup >= self.cleanup_interval:
            await self.purge_expired()

    def ttl_for(self, complexity: str) -> int:
        """
        Time-to-live for an entry of the given complexity level.

        Args:
            complexity: Complexity level value

        Returns:
            int: TTL in seconds, capped at max_ttl
        """
        try:
            multiplier = self.TTL_MULTIPLIERS[ComplexityLevel(complexity)]
        except ValueError:
            multiplier = 1.0
        return int(min(self.default_ttl * multiplier, self.max_ttl))

    def mark_stale(self, predicate: Callable[[str, Optional[str], str, FrozenSet[str]], bool]) -> int:
        """
        Mark indexed entries as stale.

        Args:
            predicate: Called with (key, project_signature, prompt_hash, frameworks)

        Returns:
            int: Number of entries newly marked stale
        """
        count = 0
        for key, record in list(self._index.items()):
            if predicate(key, record.project_signature, record.prompt_hash, record.frameworks):
                self._stale[key] = record.expires_at
                del self._index[key]
                count += 1

        # Only indexed keys can be marked, so stale markers share the index bound
        while len(self._stale) > self.max_tracked:
            self._stale.popitem(last=False)

        self._stats["invalidated"] += count
        return count

    async def purge_expired(self, now: Optional[datetime] = None) -> int:
        """
        Remove expired entries from the store and drop bookkeeping for
        expired or deleted keys.

        Args:
            now: Reference time, defaults to the current UTC time

        Returns:
            int: Number of entries the store removed
        """
        now = now or datetime.utcnow()
        self._last_cleanup = self.clock()

        try:
            removed = await self.store.purge_expired(now)
        except Exception as e:
            logger.warning(f"Cache cleanup failed: {e}")
            self._stats["errors"] += 1
            removed = 0

        for key, expires_at in list(self._stale.items()):
            if expires_at is not None and expires_at <= now:
                del self._stale[key]
                continue
            try:
                deleted = await self.store.delete(key)
            except Exception as e:
                logger.debug(f"Could not delete stale entry {key}: {e}")
                continue
            if deleted:
                del self._stale[key]

        for key, record in list(self._index.items()):
            if record.expires_at is not None and record.expires_at <= now:
                del self._index[key]

        self._stats["purged"] += removed
        if removed:
            logger.debug(f"Purged {removed} expired cache entries")
        return removed

    async def invalidate(self, pattern: Optional[str] = None) -> int:
        """
        Remove entries explicitly.

        Args:
            pattern: Substring of the key or original prompt; without one
                only expired entries are removed

        Returns:
            int: Number of entries removed
        """
        if pattern is None:
            return await self.purge_expired()

        try:
            removed = await self.store.invalidate(pattern)
        except Exception as e:
            logger.warning(f"Cache invalidation failed for pattern '{pattern}': {e}")
            self._stats["errors"] += 1
            return 0

        for key in [k for k in self._index if pattern in k]:
            del self._index[key]
        for key in [k for k in self._stale if pattern in k]:
            del self._stale[key]

        self._stats["invalidated"] += removed
        logger.info(f"Invalidated {removed} cache entries matching '{pattern}'")
        return removed

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics"""
        lookups = self._stats["hits"] + self._stats["misses"]
        return {
            **self._stats,
            "tracked_entries": len(self._index),
            "stale_entries": len(self._stale),
            "hit_rate": self._stats["hits"] / lookups if lookups else 0.0,
            "store": type(self.store).__name__,
            "checked_at": datetime.utcnow().isoformat(),
        }
