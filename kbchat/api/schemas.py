"""
Request and response models for the HTTP surface.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator


class ChatRequest(BaseModel):
    question: str
    session_id: Optional[str] = None


class ChatResponse(BaseModel):
    answer: str
    session_id: str
    intent: Optional[str] = None
    status: str = "ok"


class ChatModeRequest(BaseModel):
    mode: str


class ChatModeResponse(BaseModel):
    mode: str
    available_modes: List[str]


class DocumentIngestRequest(BaseModel):
    filename: str
    text: str

    @field_validator('filename')
    @classmethod
    def filename_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('filename cannot be empty')
        return v


class DocumentIngestResponse(BaseModel):
    document_id: int
    segment_ids: List[int]
    indexed_ids: List[int]
    failed_ids: List[int]


class SegmentResponse(BaseModel):
    id: int
    document_id: Optional[int]
    content: str
    has_vector: bool


class SegmentListResponse(BaseModel):
    document_id: int
    segments: List[SegmentResponse]


class SegmentIndexRequest(BaseModel):
    content: Optional[str] = None


class SegmentIndexResponse(BaseModel):
    segment_id: int
    indexed: bool


class ReindexResponse(BaseModel):
    total: int
    indexed: int
    failed: int


class HealthResponse(BaseModel):
    status: str
    version: str
    db_health: bool
    segment_count: int
    indexed_vectors: int
    active_sessions: int
    index: Dict[str, Any]
    sessions: Dict[str, Any]
    llm: Dict[str, Any]
