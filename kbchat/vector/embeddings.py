"""
Embedding providers and the embedding gateway.

Providers raise on failure; the gateway turns failures into the all-zero
vector (public embed) or None (try_embed) and logs them.
"""

import hashlib
import re
import threading
from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np
import ollama

from .types import EmbeddingError
from ..util.logging import logger


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    name = "abstract"

    @abstractmethod
    def embed_text(self, text: str) -> List[float]:
        """Generate embedding vector for given text."""
        pass

    @abstractmethod
    def get_dimension(self) -> Optional[int]:
        """Get the dimension of the embedding vectors, if known without a provider call."""
        pass


class DeterministicHashEmbedding(IEmbeddingProvider):
    """Deterministic feature-hashing embedding for offline use and tests.

    Each lowercased word token is hashed to a bucket and a sign; the bucket
    counts are L2-normalized. Texts sharing words therefore land close
    together, with no model download or network access.
    """

    name = "hash"
    _TOKEN_RE = re.compile(r"\w+", re.UNICODE)

    def __init__(self, dimension: int = 384):
        self.dimension = dimension

    def embed_text(self, text: str) -> List[float]:
        """Generate deterministic embedding vector using hash function."""
        vector = np.zeros(self.dimension, dtype=np.float64)

        for token in self._TOKEN_RE.findall(text.lower()):
            digest = hashlib.md5(token.encode("utf-8")).digest()
            bucket = int.from_bytes(digest[:4], "big") % self.dimension
            sign = 1.0 if digest[4] & 1 else -1.0
            vector[bucket] += sign

        norm = np.linalg.norm(vector)
        if norm > 0:
            vector /= norm
        return vector.tolist()

    def get_dimension(self) -> int:
        return self.dimension


class SentenceTransformerEmbedding(IEmbeddingProvider):
    """Local inference with a sentence-transformers model (install the `local` extra)."""

    name = "sentence_transformers"

    def __init__(self, model_name: str = "all-mpnet-base-v2"):
        self.model_name = model_name
        self._model = None
        self._dimension = None

    @property
    def model(self):
        if self._model is None:
            from sentence_transformers import SentenceTransformer
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def embed_text(self, text: str) -> List[float]:
        """Generate embedding vector using sentence transformers."""
        embedding = self.model.encode(text, convert_to_tensor=False)
        self._dimension = len(embedding)
        return embedding.tolist()

    def get_dimension(self) -> Optional[int]:
        return self._dimension


class OllamaEmbedding(IEmbeddingProvider):
    """Embeddings from a local Ollama server (`/api/embeddings`)."""

    name = "ollama"

    def __init__(self, model_name: str, host: str, timeout: float = 30.0, client=None):
        self.model_name = model_name
        self.client = client or ollama.Client(host=host, timeout=timeout)
        self._dimension = None

    def embed_text(self, text: str) -> List[float]:
        response = self.client.embeddings(model=self.model_name, prompt=text)

        embedding = response.get("embedding") if response is not None else None
        if not embedding:
            raise EmbeddingError("Ollama embeddings API returned no 'embedding' field")

        self._dimension = len(embedding)
        return [float(value) for value in embedding]

    def get_dimension(self) -> Optional[int]:
        return self._dimension


class EmbeddingGateway:
    """
    Single entry point for turning text into vectors.

    Blank text never reaches the provider. Provider failures are logged and
    reported as None by try_embed, or as the all-zero vector by embed.
    """

    def __init__(self, provider: IEmbeddingProvider, default_dimension: int = 768):
        self.provider = provider
        self.default_dimension = default_dimension
        self._last_dimension: Optional[int] = None
        self._lock = threading.Lock()

    @property
    def dimension(self) -> int:
        """Dimension used for zero vectors: last observed provider output, else the configured default."""
        return self._last_dimension or self.provider.get_dimension() or self.default_dimension

    def zero_vector(self) -> np.ndarray:
        return np.zeros(self.dimension, dtype=np.float32)

    def try_embed(self, text: str) -> Optional[np.ndarray]:
        """Embed text, returning None when the provider fails or the text is blank."""
        if text is None or not text.strip():
            return None

        try:
            vector = np.asarray(self.provider.embed_text(text), dtype=np.float32)
        except Exception as e:
            logger.log_embedding_failure(self.provider.name, e, len(text))
            return None

        if vector.ndim != 1 or vector.size == 0 or not np.all(np.isfinite(vector)):
            logger.log_embedding_failure(
                self.provider.name, EmbeddingError("provider returned an empty or non-finite vector"), len(text)
            )
            return None

        with self._lock:
            self._last_dimension = vector.shape[0]
        return vector

    def embed(self, text: str) -> np.ndarray:
        """Embed text; blank input or provider failure yields the all-zero vector."""
        if text is None or not text.strip():
            logger.warning("Embedding requested for blank text, returning zero vector")
            return self.zero_vector()

        vector = self.try_embed(text)
        return vector if vector is not None else self.zero_vector()
