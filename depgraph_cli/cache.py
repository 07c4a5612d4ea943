"""In-memory cache of analysis results keyed by ``(repository, entity_id)``."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from .config import DEFAULT_CACHE_TTL
from .models import AnalysisResult

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str]


@dataclass
class _Entry:
    result: AnalysisResult
    expires_at: float


class AnalysisCache:
    """TTL cache for analyses with explicit invalidation.

    Entries expire ``ttl`` seconds after they are stored.  ``invalidate``
    drops a single entity, a whole repository, or everything.
    """

    def __init__(self, ttl: float = DEFAULT_CACHE_TTL, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[CacheKey, _Entry] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        entry = self._entries.get(key)
        return entry is not None and self._clock() < entry.expires_at

    def get(self, repository: str, entity_id: str) -> Optional[AnalysisResult]:
        key = (repository, entity_id)
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            self.misses += 1
            logger.info("Cache entry expired: %s:%s", repository, entity_id)
            return None
        self.hits += 1
        logger.info("Cache hit: %s:%s", repository, entity_id)
        return entry.result

    def put(self, repository: str, entity_id: str, result: AnalysisResult, ttl: Optional[float] = None) -> None:
        lifetime = self.ttl if ttl is None else ttl
        self._entries[(repository, entity_id)] = _Entry(result, self._clock() + lifetime)

    def get_or_load(
        self,
        repository: str,
        entity_id: str,
        loader: Callable[[], AnalysisResult],
        force_refresh: bool = False,
    ) -> AnalysisResult:
        if not force_refresh:
            cached = self.get(repository, entity_id)
            if cached is not None:
                return cached
        result = loader()
        self.put(repository, entity_id, result)
        return result

    def invalidate(self, repository: Optional[str] = None, entity_id: Optional[str] = None) -> int:
        """Drop matching entries and return how many were removed."""
        if repository is None and entity_id is None:
            removed = len(self._entries)
            self._entries.clear()
            return removed
        doomed = [
            key for key in self._entries
            if (repository is None or key[0] == repository)
            and (entity_id is None or key[1] == entity_id)
        ]
        for key in doomed:
            del self._entries[key]
        if doomed:
            logger.info("Invalidated %d cache entr%s", len(doomed), "y" if len(doomed) == 1 else "ies")
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0
