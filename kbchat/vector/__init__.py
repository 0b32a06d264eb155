"""
Vector layer: embeddings, the in-memory cosine index and its persisted byte format.
SQLite segment rows stay the source of truth; the index is rebuilt from them.
"""

from .index import IVectorStore, SimpleInMemoryVectorStore, cosine_similarity
from .types import QueryResult, EmbeddingError, DimensionMismatchError
from .serialization import serialize_vector, deserialize_vector
from .embeddings import (
    IEmbeddingProvider,
    DeterministicHashEmbedding,
    SentenceTransformerEmbedding,
    OllamaEmbedding,
    EmbeddingGateway
)

__all__ = [
    'IVectorStore',
    'SimpleInMemoryVectorStore',
    'cosine_similarity',
    'QueryResult',
    'EmbeddingError',
    'DimensionMismatchError',
    'serialize_vector',
    'deserialize_vector',
    'IEmbeddingProvider',
    'DeterministicHashEmbedding',
    'SentenceTransformerEmbedding',
    'OllamaEmbedding',
    'EmbeddingGateway'
]
