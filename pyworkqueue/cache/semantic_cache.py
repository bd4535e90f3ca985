# pyworkqueue/cache/semantic_cache.py
import hashlib
import itertools
import logging
import math
import time
import uuid
from datetime import datetime, UTC
from threading import RLock
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

import numpy as np

from pyworkqueue.common.metrics import RunningAverage
from pyworkqueue.config import CacheSettings
from .embeddings import EmbeddingProvider, cosine_similarity, normalize_text
from .models import CacheEntry, CacheMetrics, CacheResult

logger = logging.getLogger(__name__)

ComputeFunction = Callable[[str, Hashable], Any]


class SemanticCache:
    """
    Reuses expensive results for inputs whose embeddings are nearly identical.

    Similarity is only ever compared between entries that share the caller's
    scope key exactly. A hit needs cosine similarity at or above the
    configured threshold (0.95 by default): reusing a result for a different
    input is worse than computing a new one.

    The cache is a cost optimization. If the embedding provider fails the
    lookup is skipped and ``compute_fn`` is called directly.

    Concurrent misses for equivalent input are not collapsed; both callers
    compute and both results are stored.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        settings: Optional[CacheSettings] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ):
        self.provider = provider
        self.settings = settings or CacheSettings()
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._sequence = itertools.count(1)
        self._lock = RLock()
        self._metrics = CacheMetrics()
        self._hit_time = RunningAverage()
        self._miss_time = RunningAverage()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_or_compute(
        self, text: str, scope_key: Hashable, compute_fn: ComputeFunction
    ) -> CacheResult:
        start = time.perf_counter()
        scope_key = _freeze(scope_key)

        try:
            vector = self._embed(text)
        except Exception as e:
            logger.warning(f"[Semantic Cache] Embedding failed, computing directly: {e}")
            with self._lock:
                self._metrics.fallbacks += 1
            return CacheResult(compute_fn(text, scope_key), False, None)

        match = self._find_similar(vector, scope_key)
        if match is not None:
            entry, similarity = match
            elapsed = time.perf_counter() - start
            self._record_hit(elapsed)
            logger.debug(f"[Semantic Cache] HIT {entry.id} similarity={similarity:.4f}")
            return CacheResult(entry.result, True, similarity)

        logger.debug("[Semantic Cache] MISS, computing")
        result = compute_fn(text, scope_key)
        self._record_miss(time.perf_counter() - start)
        self._add(text, vector, scope_key, result)
        return CacheResult(result, False, None)

    def _embed(self, text: str) -> np.ndarray:
        normalized = normalize_text(text, self.settings.max_input_chars)
        return np.asarray(self.provider.embed(normalized), dtype=np.float64)

    def _find_similar(
        self, vector: np.ndarray, scope_key: Hashable
    ) -> Optional[Tuple[CacheEntry, float]]:
        with self._lock:
            best: Optional[CacheEntry] = None
            best_similarity = -math.inf
            for entry in self._entries.values():
                # Never compare across scopes, however close the vectors are
                if entry.scope_key != scope_key:
                    continue
                if entry.vector.shape != vector.shape:
                    logger.debug(f"[Semantic Cache] Skipping {entry.id}: dimension mismatch")
                    continue
                similarity = cosine_similarity(vector, entry.vector)
                if similarity > best_similarity:
                    best, best_similarity = entry, similarity

            if best is None or best_similarity < self.settings.similarity_threshold:
                return None

            best.access_count += 1
            best.last_accessed_at = self._clock()
            return best, best_similarity

    def _add(self, text: str, vector: np.ndarray, scope_key: Hashable, result: Any) -> None:
        now = self._clock()
        with self._lock:
            entry = CacheEntry(
                id=f"cache_{uuid.uuid4().hex[:12]}",
                fingerprint=hashlib.sha256(text.encode("utf-8")).hexdigest(),
                preview=text[:500],
                vector=vector,
                scope_key=scope_key,
                result=result,
                sequence=next(self._sequence),
                created_at=now,
                last_accessed_at=now,
            )
            self._entries[entry.id] = entry

            if len(self._entries) > self.settings.max_entries:
                self._evict_least_used()
            self._metrics.size = len(self._entries)

    def _evict_least_used(self) -> List[str]:
        # One batch per overflow keeps eviction cost amortized
        batch = max(1, math.floor(self.settings.max_entries * self.settings.eviction_fraction))
        ranked = sorted(self._entries.values(), key=CacheEntry.eviction_rank)
        evicted = [entry.id for entry in ranked[:batch]]
        for entry_id in evicted:
            del self._entries[entry_id]
        logger.info(f"[Semantic Cache] Evicted {len(evicted)} least-used entries")
        return evicted

    def _record_hit(self, elapsed: float) -> None:
        with self._lock:
            self._metrics.hits += 1
            self._metrics.total_saved += 1
            self._metrics.cost_savings = (
                self._metrics.total_saved * self.settings.estimated_cost_per_call
            )
            self._metrics.average_hit_time = self._hit_time.add(elapsed)

    def _record_miss(self, elapsed: float) -> None:
        with self._lock:
            self._metrics.misses += 1
            self._metrics.average_miss_time = self._miss_time.add(elapsed)

    def entries(self) -> List[CacheEntry]:
        with self._lock:
            return list(self._entries.values())

    def metrics(self) -> Dict[str, Any]:
        with self._lock:
            self._metrics.size = len(self._entries)
            return self._metrics.as_dict()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._metrics.size = 0
        logger.info("[Semantic Cache] Cache cleared")


def _freeze(scope_key: Hashable) -> Hashable:
    if isinstance(scope_key, list):
        return tuple(scope_key)
    return scope_key
