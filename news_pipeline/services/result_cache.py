"""
In-memory TTL cache of aggregation results keyed by (query, region).

Reads come in two modes.  ``get`` is the strict read used on the normal
path: an expired entry is deleted and treated as a miss.  ``get_lenient``
ignores expiry and is used only as the last resort when a live fetch
fails outright.  Nothing is purged proactively.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from ..models.schemas import Article

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str]

DEFAULT_TTL_SECONDS = 30 * 60


def make_key(query: str, region: str) -> CacheKey:
    return (query.strip().lower(), region.strip().upper())


@dataclass
class CacheEntry:
    key: CacheKey
    articles: List[Article]
    timestamp: float
    ttl: float = DEFAULT_TTL_SECONDS
    metadata: Dict[str, object] = field(default_factory=dict)


class ResultCache:
    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS,
                 clock: Callable[[], float] = time.time):
        self.ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def is_expired(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.timestamp > entry.ttl

    def get(self, key: CacheKey) -> Optional[CacheEntry]:
        """Strict read: expired entries are removed and reported as a miss."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.is_expired(entry):
            logger.debug(f"Cache entry for {key} expired; evicting")
            del self._entries[key]
            return None
        return entry

    def get_lenient(self, key: CacheKey) -> Optional[CacheEntry]:
        """Lenient read: returns the entry even if it has expired."""
        return self._entries.get(key)

    def set(self, key: CacheKey, articles: List[Article], **metadata) -> CacheEntry:
        entry = CacheEntry(
            key=key,
            articles=list(articles),
            timestamp=self._clock(),
            ttl=self.ttl,
            metadata=dict(metadata),
        )
        self._entries[key] = entry
        return entry

    def entries(self) -> List[CacheEntry]:
        """All entries, expired or not, without evicting anything."""
        return list(self._entries.values())
