"""
Caching layer for embeddings.

Bounded in-memory LRU keyed by normalized text. Vectors are copied on the
way in and on the way out so no caller can mutate cached state.
"""

import logging
import threading
from collections import OrderedDict
from typing import Optional

import numpy as np

from shared.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 512


def normalize_text(text: Optional[str]) -> str:
    """
    Canonical cache key for text.

    Strips the ends and collapses whitespace runs to one space. Case,
    diacritics and punctuation are left alone.

    Example:
        >>> normalize_text("  Hello \\n\\t World ")
        'Hello World'
    """
    if text is None:
        return ""
    return " ".join(text.split())


class EmbeddingCache:
    """
    Least-recently-used embedding cache.

    Usage:
        cache = EmbeddingCache(capacity=512)
        cache.put("hello world", vector)
        vector = cache.get("hello world")  # copy, or None on miss
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity <= 0:
            raise ConfigurationError(f"capacity must be greater than zero, but is: {capacity}")

        self.capacity = capacity
        self._entries: "OrderedDict[str, np.ndarray]" = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: str) -> Optional[np.ndarray]:
        """Return a copy of the cached vector and mark it most recently used."""
        with self._lock:
            vector = self._entries.get(key)
            if vector is None:
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            logger.debug(f"Cache hit: {key[:50]}...")
            return vector.copy()

    def put(self, key: str, vector: np.ndarray) -> None:
        """Store a copy of vector, evicting the least recently used entry if full."""
        stored = np.array(vector, copy=True)
        with self._lock:
            self._entries[key] = stored
            self._entries.move_to_end(key)
            if len(self._entries) > self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug(f"Cache evicted: {evicted[:50]}...")

    def __contains__(self, key: str) -> bool:
        """Membership test; does not change recency."""
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        """Clear all cache entries."""
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict:
        """Get cache statistics."""
        with self._lock:
            return {
                "size": len(self._entries),
                "capacity": self.capacity,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }
