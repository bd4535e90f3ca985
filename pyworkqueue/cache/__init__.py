from .embeddings import (
    EmbeddingProvider,
    OpenAIEmbeddingProvider,
    cosine_similarity,
    normalize_text,
)
from .models import CacheEntry, CacheMetrics, CacheResult
from .semantic_cache import SemanticCache

__all__ = [
    "CacheEntry",
    "CacheMetrics",
    "CacheResult",
    "EmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "SemanticCache",
    "cosine_similarity",
    "normalize_text",
]
