"""
Semantic Memory Service
Embeds segment text, keeps the in-memory cosine index in sync with the
persisted segment vectors, and answers similarity queries for the chat path.
"""

import threading
from typing import Iterable, List, Optional, Tuple

import numpy as np

from .embeddings import EmbeddingGateway
from .index import IVectorStore, SimpleInMemoryVectorStore
from .serialization import deserialize_vector, serialize_vector
from .types import DimensionMismatchError
from ..core import config
from ..util.logging import logger


class SemanticMemoryService:
    """
    High-level service for semantic memory operations.

    Indexing is best-effort: every step that fails is logged and the segment
    is skipped, while other segments in a batch carry on. A failed embedding
    is never stored, so it cannot rank against anything.
    """

    def __init__(self, gateway: EmbeddingGateway, vector_store: IVectorStore = None, repository=None):
        self.gateway = gateway
        self.vector_store = vector_store if vector_store is not None else SimpleInMemoryVectorStore()
        if repository is None:
            from ..core import dao as repository
        self.repository = repository
        self._reindex_lock = threading.Lock()

    # Embedding

    def embed(self, text: str) -> np.ndarray:
        """Embed text. Blank input or a provider failure yields the all-zero vector."""
        return self.gateway.embed(text)

    def try_embed(self, text: str) -> Optional[np.ndarray]:
        """Embed text, or None when no embedding could be produced."""
        return self.gateway.try_embed(text)

    # Indexing

    def index(self, segment_id: int, content: str) -> bool:
        """
        Embed a segment, store it in the index and persist its vector bytes.

        Returns True when the vector reached the in-memory index. A failed
        persistence write is logged but still leaves the vector indexed.
        """
        vector = self.try_embed(content)
        if vector is None:
            logger.log_vector_operation("index", segment_id, {"reason": "embedding_unavailable"}, status="failed")
            return False

        try:
            self.vector_store.add(segment_id, vector)
        except DimensionMismatchError as e:
            logger.log_vector_operation("index", segment_id, {
                "reason": "dimension_mismatch",
                "expected": e.expected,
                "actual": e.actual
            }, status="failed")
            return False

        try:
            if not self.repository.update_segment_vector(segment_id, serialize_vector(vector)):
                logger.log_vector_operation("persist", segment_id, {"reason": "segment_not_found"}, status="failed")
        except Exception as e:
            logger.log_persistence_failure("update_segment_vector", e, {"segment_id": segment_id})

        logger.log_vector_operation("index", segment_id, {"dimension": int(vector.shape[0])})
        return True

    def index_segments(self, segments: Iterable) -> List[int]:
        """Index a batch of segments, returning the ids that made it into the index."""
        indexed_ids = []
        for segment in segments:
            try:
                if self.index(segment.id, segment.content):
                    indexed_ids.append(segment.id)
            except Exception as e:
                logger.log_vector_operation("index", segment.id, {"error": str(e)}, status="failed")
                continue
        return indexed_ids

    def reindex_all(self) -> dict:
        """
        Re-embed every stored segment and overwrite its persisted vector.

        The in-memory index is cleared first, so the active dimension is
        taken from whichever provider is configured now. A segment that
        cannot be re-embedded loses its old vector, persisted bytes included.
        """
        with self._reindex_lock:
            segments = self.repository.find_all_segments()
            total = len(segments)
            logger.log_operation("vector.reindex_all", "started", {"total": total})

            self.vector_store.clear()
            succeeded = 0
            for position, segment in enumerate(segments, start=1):
                try:
                    indexed = self.index(segment.id, segment.content)
                except Exception as e:
                    logger.log_vector_operation("reindex", segment.id, {"error": str(e)}, status="failed")
                    indexed = False

                if indexed:
                    succeeded += 1
                elif segment.vector is not None:
                    self._drop_persisted_vector(segment.id)

                if position % 100 == 0:
                    logger.info(f"Reindex progress: {position}/{total}")

            stats = {"total": total, "indexed": succeeded, "failed": total - succeeded}
            logger.log_operation("vector.reindex_all", "completed", stats)
            return stats

    def _drop_persisted_vector(self, segment_id: int) -> None:
        """Forget a vector from the previous provider so a restart cannot load it."""
        try:
            self.repository.update_segment_vector(segment_id, None)
        except Exception as e:
            logger.log_persistence_failure("update_segment_vector", e, {"segment_id": segment_id})

    def load_from_repository(self) -> int:
        """Rebuild the in-memory index from persisted segment vectors. Returns the number loaded."""
        loaded = 0
        for segment in self.repository.find_all_segments():
            if segment.vector is None:
                continue
            try:
                vector = deserialize_vector(segment.vector)
                if vector.size == 0 or not np.any(vector):
                    continue
                self.vector_store.add(segment.id, vector)
                loaded += 1
            except (ValueError, DimensionMismatchError) as e:
                logger.log_vector_operation("load", segment.id, {"error": str(e)}, status="failed")

        logger.log_operation("vector.load", "completed", {"loaded": loaded})
        return loaded

    # Querying

    def search(self, query_vector: np.ndarray, k: int = None, min_similarity: float = None) -> List[int]:
        """Segment ids ranked by cosine similarity, at most k, none below min_similarity."""
        return [segment_id for segment_id, _ in self.search_with_scores(query_vector, k, min_similarity)]

    def search_with_scores(self, query_vector: np.ndarray, k: int = None,
                           min_similarity: float = None) -> List[Tuple[int, float]]:
        k = config.SEARCH_TOP_K if k is None else k
        min_similarity = config.MIN_SIMILARITY if min_similarity is None else min_similarity

        results = self.vector_store.search(query_vector, top_k=k, min_similarity=min_similarity)
        return [(result.id, result.score) for result in results]

    def find_relevant_segments(self, question: str, k: int = None, min_similarity: float = None) -> List[str]:
        """Contents of the segments most similar to the question, best match first."""
        ids = self.search(self.embed(question), k, min_similarity)
        if not ids:
            return []
        return [segment.content for segment in self.repository.find_segments_by_ids(ids)]

    def get_stats(self) -> dict:
        return {
            "indexed_vectors": len(self.vector_store),
            "dimension": getattr(self.vector_store, "dimension", None),
            "embedding_provider": self.gateway.provider.name
        }
