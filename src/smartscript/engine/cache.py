"""Bounded memo of segmentation results.

Keys combine the raw text with the Combined Pattern's source and flags,
so one text processed under two configurations never collides.
Eviction drops the oldest *inserted* entry (FIFO, not LRU).

Not thread-safe: the engine runs single-threaded. A multi-threaded host
must own the cache from one thread or wrap calls in a lock.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from smartscript.engine.segmenter import segment

if TYPE_CHECKING:
    import re

    from smartscript.engine.parts import OutputPart

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 1000

CacheKey = tuple[str, str, int]


class ResultCache:
    """FIFO-bounded cache of ``segment`` results."""

    def __init__(self, max_size: int = DEFAULT_CACHE_SIZE) -> None:
        self.max_size = max(1, max_size)
        # dict preserves insertion order; the first key is the oldest
        self._entries: dict[CacheKey, list[OutputPart]] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def key_for(text: str, pattern: re.Pattern[str]) -> CacheKey:
        return (text, pattern.pattern, pattern.flags)

    def get(self, text: str, pattern: re.Pattern[str]) -> list[OutputPart]:
        """Return the segmentation of *text*, computing and storing on a miss.

        Callers receive a fresh list each time; cached parts themselves
        are immutable.
        """
        key = self.key_for(text, pattern)
        cached = self._entries.get(key)
        if cached is not None:
            self.hits += 1
            logger.debug("Cache hit for text: %r", text[:20])
            return list(cached)

        self.misses += 1
        result = segment(text, pattern)

        if len(self._entries) >= self.max_size:
            oldest = next(iter(self._entries))
            del self._entries[oldest]

        self._entries[key] = result
        return list(result)

    def clear(self) -> None:
        """Drop every entry. Called on navigation and configuration change."""
        self._entries.clear()
        logger.debug("Processing cache cleared")


_default_cache = ResultCache()


def get_default_cache() -> ResultCache:
    return _default_cache


def get_segments(text: str, pattern: re.Pattern[str]) -> list[OutputPart]:
    """Segment *text* through the shared module cache."""
    return _default_cache.get(text, pattern)


def clear_cache() -> None:
    """Clear the shared module cache."""
    _default_cache.clear()


def resolve_cache(cache: ResultCache | None) -> ResultCache:
    """Return *cache*, or the shared module cache when it is None.

    An empty cache is falsy (``__len__``), so callers must not use ``or``.
    """
    return cache if cache is not None else _default_cache
