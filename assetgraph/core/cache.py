import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic
from typing import TypeVar

import structlog

logger = structlog.get_logger('cache')

V = TypeVar('V')

DEFAULT_TTL = 5 * 60  # seconds


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    clears: int = 0


class TTLCache(Generic[V]):
    """
    In-memory cache whose entries expire ``ttl`` seconds after being set.

    Expired entries are evicted lazily on the next read of their key; there
    is no background sweep. Not synchronised: concurrent misses for the same
    key may both hydrate, and the later ``set`` simply overwrites.
    """

    def __init__(self, ttl: float = DEFAULT_TTL, clock: Callable[[], float] = time.monotonic):
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, V]] = {}
        self.stats = CacheStats()

    def get(self, key: str) -> V | None:
        entry = self._entries.get(key)
        if entry is None:
            self.stats.misses += 1
            return None
        stored_at, value = entry
        if self._clock() - stored_at > self.ttl:
            del self._entries[key]
            self.stats.evictions += 1
            self.stats.misses += 1
            logger.debug('Cache entry expired', key=key)
            return None
        self.stats.hits += 1
        return value

    def set(self, key: str, value: V) -> None:
        self._entries[key] = (self._clock(), value)

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop everything. Used whenever a bulk change may have staled several entries."""
        count = len(self._entries)
        self._entries.clear()
        self.stats.clears += 1
        logger.debug('Cache cleared', entries=count)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries
