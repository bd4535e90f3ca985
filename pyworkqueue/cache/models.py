# pyworkqueue/cache/models.py
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any, NamedTuple, Optional, Tuple

import numpy as np


class CacheResult(NamedTuple):
    result: Any
    was_cache_hit: bool
    similarity: Optional[float] = None


@dataclass
class CacheEntry:
    id: str
    fingerprint: str  # sha256 of the raw input, for debugging only
    preview: str
    vector: np.ndarray
    scope_key: Tuple[str, ...]
    result: Any
    sequence: int = 0
    access_count: int = 1
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_accessed_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def eviction_rank(self) -> Tuple[int, datetime, int]:
        # Least valuable first
        return (self.access_count, self.last_accessed_at, self.sequence)


@dataclass
class CacheMetrics:
    hits: int = 0
    misses: int = 0
    fallbacks: int = 0
    total_saved: int = 0
    cost_savings: float = 0.0
    average_hit_time: float = 0.0
    average_miss_time: float = 0.0
    size: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return (self.hits / total) * 100 if total else 0.0

    def as_dict(self) -> dict:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "fallbacks": self.fallbacks,
            "hit_rate": self.hit_rate,
            "total_saved": self.total_saved,
            "cost_savings": self.cost_savings,
            "average_hit_time": self.average_hit_time,
            "average_miss_time": self.average_miss_time,
            "size": self.size,
        }
