"""
In-memory cache of processing results keyed by upload content and request options
"""
import hashlib
import logging
import time
from typing import Callable, Dict, Optional

from cachetools import TTLCache

from models.api import ProcessingResult

logger = logging.getLogger(__name__)


class ResultCache:
    """
    Bounded TTL store for finished results.

    Entries expire ``ttl_seconds`` after they were written; when full, the
    least recently used entry is evicted. Identical concurrent requests are not
    coalesced and may both compute their result.
    """

    def __init__(
        self,
        ttl_seconds: float = 3600,
        max_entries: int = 256,
        timer: Callable[[], float] = time.monotonic
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._cache: TTLCache = TTLCache(maxsize=max_entries, ttl=ttl_seconds, timer=timer)
        self.stats = {"hits": 0, "misses": 0, "sets": 0}

        logger.info(f"Result cache initialized: max_entries={max_entries}, ttl={ttl_seconds}s")

    @staticmethod
    def make_key(content: bytes, question_type: str, num_questions: int) -> str:
        digest = hashlib.sha256(content).hexdigest()[:16]
        return f"{digest}:{question_type}:{num_questions}"

    def get(self, key: str) -> Optional[ProcessingResult]:
        result = self._cache.get(key)
        if result is None:
            self.stats["misses"] += 1
            return None

        self.stats["hits"] += 1
        logger.debug(f"Cache hit: {key}")
        return result

    def set(self, key: str, result: ProcessingResult) -> None:
        self._cache[key] = result
        self.stats["sets"] += 1
        logger.debug(f"Cached result: {key}")

    def clear(self) -> None:
        self._cache.clear()
        logger.info("Result cache cleared")

    def __len__(self) -> int:
        self._cache.expire()
        return len(self._cache)

    def get_stats(self) -> Dict[str, float]:
        """Hit/miss counters plus current size"""
        lookups = self.stats["hits"] + self.stats["misses"]
        return {
            **self.stats,
            "size": len(self),
            "max_entries": self.max_entries,
            "ttl_seconds": self.ttl_seconds,
            "hit_rate": self.stats["hits"] / lookups if lookups else 0.0,
        }
