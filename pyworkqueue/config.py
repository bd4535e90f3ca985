# pyworkqueue/config.py
import os
from dataclasses import dataclass


def _env(name: str, default, cast=str):
    raw = os.getenv(f"PYWORKQUEUE_{name}")
    if raw is None or raw == "":
        return default
    if cast is bool:
        return raw.strip().lower() in {"1", "true", "yes", "on"}
    return cast(raw)


@dataclass
class QueueSettings:
    worker_count: int = 1
    poll_interval: float = 0.1
    default_max_attempts: int = 3
    max_finished_jobs: int = 1000
    cleanup_interval: float = 3600.0
    auto_start: bool = True

    def __post_init__(self):
        if self.worker_count < 1:
            raise ValueError("worker_count must be at least 1")
        if self.default_max_attempts < 1:
            raise ValueError("default_max_attempts must be at least 1")
        if self.max_finished_jobs < 0:
            raise ValueError("max_finished_jobs cannot be negative")
        if self.poll_interval <= 0 or self.cleanup_interval <= 0:
            raise ValueError("intervals must be positive")

    @classmethod
    def from_env(cls) -> "QueueSettings":
        return cls(
            worker_count=_env("WORKER_COUNT", cls.worker_count, int),
            poll_interval=_env("POLL_INTERVAL", cls.poll_interval, float),
            default_max_attempts=_env("MAX_ATTEMPTS", cls.default_max_attempts, int),
            max_finished_jobs=_env("MAX_FINISHED_JOBS", cls.max_finished_jobs, int),
            cleanup_interval=_env("CLEANUP_INTERVAL", cls.cleanup_interval, float),
            auto_start=_env("AUTO_START", cls.auto_start, bool),
        )


@dataclass
class CacheSettings:
    similarity_threshold: float = 0.95
    max_entries: int = 1000
    eviction_fraction: float = 0.1
    max_input_chars: int = 8000
    embedding_model: str = "text-embedding-3-small"
    # GPT-4o class completion, ~1500 tokens at $0.01 / 1K
    estimated_cost_per_call: float = 0.015

    def __post_init__(self):
        if not -1.0 <= self.similarity_threshold <= 1.0:
            raise ValueError("similarity_threshold must be within [-1, 1]")
        if self.max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        if not 0.0 < self.eviction_fraction <= 1.0:
            raise ValueError("eviction_fraction must be within (0, 1]")

    @classmethod
    def from_env(cls) -> "CacheSettings":
        return cls(
            similarity_threshold=_env(
                "CACHE_SIMILARITY_THRESHOLD", cls.similarity_threshold, float
            ),
            max_entries=_env("CACHE_MAX_ENTRIES", cls.max_entries, int),
            eviction_fraction=_env("CACHE_EVICTION_FRACTION", cls.eviction_fraction, float),
            max_input_chars=_env("CACHE_MAX_INPUT_CHARS", cls.max_input_chars, int),
            embedding_model=_env("EMBEDDING_MODEL", cls.embedding_model),
            estimated_cost_per_call=_env(
                "CACHE_COST_PER_CALL", cls.estimated_cost_per_call, float
            ),
        )
