"""
In-memory cosine similarity index keyed by segment id.
"""

import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import numpy as np

from .types import DimensionMismatchError, QueryResult

EPSILON = 1e-10


def cosine_similarity(a: Optional[np.ndarray], b: Optional[np.ndarray]) -> float:
    """
    Cosine similarity of two vectors.

    Returns 0.0 when either vector is missing, empty, or the lengths differ.
    EPSILON in the denominator keeps zero vectors at 0.0 instead of dividing by zero.
    """
    if a is None or b is None:
        return 0.0

    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.size == 0 or b.size == 0 or a.shape != b.shape:
        return 0.0

    dot = float(np.dot(a, b))
    return dot / (float(np.linalg.norm(a)) * float(np.linalg.norm(b)) + EPSILON)


class IVectorStore(ABC):
    """Abstract interface for vector storage operations."""

    @abstractmethod
    def add(self, segment_id: int, vector: np.ndarray) -> None:
        """Add or replace the vector for a segment."""
        pass

    @abstractmethod
    def get(self, segment_id: int) -> Optional[np.ndarray]:
        """Get the vector stored for a segment."""
        pass

    @abstractmethod
    def search(self, query_vector: np.ndarray, top_k: int = 5, min_similarity: float = -1.0) -> List[QueryResult]:
        """Search for similar vectors and return ranked results."""
        pass

    @abstractmethod
    def delete(self, segment_id: int) -> None:
        """Delete a segment's vector."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Clear all vectors from the store."""
        pass


class SimpleInMemoryVectorStore(IVectorStore):
    """
    Brute-force cosine index over a dict of segment id -> float32 vector.

    Entries are replaced wholesale, never mutated in place. The first vector
    added fixes the index dimension; clear() resets it.
    """

    def __init__(self):
        self._vectors: Dict[int, np.ndarray] = {}
        self._dimension: Optional[int] = None
        self._lock = threading.Lock()

    @property
    def dimension(self) -> Optional[int]:
        return self._dimension

    def add(self, segment_id: int, vector: np.ndarray) -> None:
        """Add or replace the vector for a segment."""
        stored = np.array(vector, dtype=np.float32)
        stored.setflags(write=False)

        with self._lock:
            if self._dimension is None or not self._vectors:
                self._dimension = stored.shape[0]
            elif stored.shape[0] != self._dimension:
                raise DimensionMismatchError(self._dimension, stored.shape[0])
            self._vectors[segment_id] = stored

    def get(self, segment_id: int) -> Optional[np.ndarray]:
        return self._vectors.get(segment_id)

    def search(self, query_vector: np.ndarray, top_k: int = 5, min_similarity: float = -1.0) -> List[QueryResult]:
        """
        Rank every indexed vector by cosine similarity to the query.

        Entries below min_similarity are dropped; at most top_k results are
        returned, highest score first. Zero-norm vectors (query or stored) never rank.
        """
        if top_k <= 0 or query_vector is None:
            return []

        query = np.asarray(query_vector, dtype=np.float32)
        if query.size == 0 or not np.any(query):
            return []

        with self._lock:
            snapshot = list(self._vectors.items())

        scored = []
        for segment_id, stored_vector in snapshot:
            if not np.any(stored_vector):
                continue
            score = cosine_similarity(query, stored_vector)
            if score >= min_similarity:
                scored.append(QueryResult(id=segment_id, score=score))

        # Stable sort keeps iteration order among ties
        scored.sort(key=lambda result: result.score, reverse=True)
        return scored[:top_k]

    def delete(self, segment_id: int) -> None:
        with self._lock:
            self._vectors.pop(segment_id, None)

    def clear(self) -> None:
        with self._lock:
            self._vectors.clear()
            self._dimension = None

    def __len__(self) -> int:
        return len(self._vectors)

    def __contains__(self, segment_id: int) -> bool:
        return segment_id in self._vectors
