"""
Cache Store - Time-stamped key/value entries with TTL validity

The store never decides freshness on read: `get` returns whatever is held,
and callers ask `is_valid` first. That lets the fetcher fall back to an
expired entry when the network fails.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    key: str
    payload: Any
    captured_at: float


class CacheStore:
    """
    In-memory cache owned by a single data layer instance.

    Entries persist until overwritten, invalidated or cleared; there is no
    eviction other than the TTL validity check.
    """

    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            ttl_seconds: Entry lifetime; an entry is valid iff now - captured_at < ttl
            clock: Monotonic time source in seconds (injectable for tests)
        """
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be > 0: {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        return entry.payload if entry is not None else None

    def entry(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def set(self, key: str, payload: Any) -> None:
        # Replaced wholesale, never merged with the previous payload
        self._entries[key] = CacheEntry(key=key, payload=payload, captured_at=self._clock())

    def is_valid(self, key: str) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        return self._clock() - entry.captured_at < self.ttl_seconds

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        logger.debug(f"Clearing cache ({len(self._entries)} entries)")
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
