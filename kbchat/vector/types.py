"""
Vector index record and error types.
"""

from dataclasses import dataclass


@dataclass
class QueryResult:
    """Represents a search result from the vector store."""

    id: int
    """Segment identifier of the match"""

    score: float
    """Cosine similarity of the match, in [-1, 1]"""


class EmbeddingError(Exception):
    """Raised by a provider that could not produce a usable embedding."""


class DimensionMismatchError(ValueError):
    """Raised when a vector's length differs from the index's active dimension."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Vector dimension {actual} does not match active index dimension {expected}")
        self.expected = expected
        self.actual = actual
