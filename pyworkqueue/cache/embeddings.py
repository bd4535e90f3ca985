# pyworkqueue/cache/embeddings.py
import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import numpy as np
from openai import OpenAI

from pyworkqueue.common.exceptions import EmbeddingProviderError

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_PUNCTUATION_RE = re.compile(r"[^\w\s]")


def normalize_text(text: str, max_chars: int = 8000) -> str:
    """Lowercases, collapses whitespace and drops punctuation before embedding."""
    text = _WHITESPACE_RE.sub(" ", text.lower())
    text = _PUNCTUATION_RE.sub("", text)
    return text.strip()[:max_chars]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Dot product over the product of magnitudes; 0.0 for a zero vector."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Embeddings must have same length: {va.shape} vs {vb.shape}")
    denominator = np.linalg.norm(va) * np.linalg.norm(vb)
    if denominator == 0:
        return 0.0
    return float(np.dot(va, vb) / denominator)


class EmbeddingProvider(ABC):
    @abstractmethod
    def embed(self, text: str) -> List[float]: ...


class OpenAIEmbeddingProvider(EmbeddingProvider):
    def __init__(self, client: Optional[OpenAI] = None, model: str = "text-embedding-3-small"):
        self.client = client or OpenAI()
        self.model = model

    def embed(self, text: str) -> List[float]:
        try:
            response = self.client.embeddings.create(model=self.model, input=text)
        except Exception as e:
            raise EmbeddingProviderError(f"Embedding request failed: {e}") from e
        if not response.data:
            raise EmbeddingProviderError("Embedding response was empty")
        return response.data[0].embedding
