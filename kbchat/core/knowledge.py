"""
Knowledge base ingest: plain text document -> fixed-length segments -> vector index.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from . import config
from .schema import Document, Segment
from ..util.logging import logger
from ..util.text_utils import chunk_text


@dataclass
class IngestResult:
    document_id: int
    segment_ids: List[int] = field(default_factory=list)
    indexed_ids: List[int] = field(default_factory=list)

    @property
    def failed_ids(self) -> List[int]:
        indexed = set(self.indexed_ids)
        return [segment_id for segment_id in self.segment_ids if segment_id not in indexed]


class KnowledgeService:
    """Creates documents and segments and hands each segment to the semantic memory."""

    def __init__(self, semantic_memory, repository=None, chunk_size: int = None):
        self.semantic_memory = semantic_memory
        if repository is None:
            from . import dao as repository
        self.repository = repository
        self.chunk_size = chunk_size or config.CHUNK_SIZE

    def ingest_text(self, filename: str, text: str, user_id: Optional[str] = None) -> IngestResult:
        """
        Store a document and its segments, indexing each segment as it is saved.

        Segments that cannot be indexed are still stored; they are picked up
        again by a later reindex.
        """
        document_id = self.repository.save_document(Document(id=None, filename=filename, user_id=user_id))
        result = IngestResult(document_id=document_id)

        for chunk in chunk_text(text, self.chunk_size):
            segment_id = self.repository.save_segment(Segment(id=None, document_id=document_id, content=chunk))
            result.segment_ids.append(segment_id)

            try:
                if self.semantic_memory.index(segment_id, chunk):
                    result.indexed_ids.append(segment_id)
            except Exception as e:
                logger.log_vector_operation("index", segment_id, {"error": str(e)}, status="failed")

        logger.log_operation("knowledge.ingest", "success", {
            "document_id": document_id,
            "filename": filename,
            "segments": len(result.segment_ids),
            "indexed": len(result.indexed_ids)
        })
        return result

    def get_segments(self, document_id: int) -> List[Segment]:
        return self.repository.find_segments_by_document_id(document_id)
