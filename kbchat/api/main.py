"""
HTTP surface: chat, chat-mode switching and knowledge base maintenance.
"""

from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from .dependencies import Services, get_services
from .schemas import (
    ChatModeRequest,
    ChatModeResponse,
    ChatRequest,
    ChatResponse,
    DocumentIngestRequest,
    DocumentIngestResponse,
    HealthResponse,
    ReindexResponse,
    SegmentIndexRequest,
    SegmentIndexResponse,
    SegmentListResponse,
    SegmentResponse,
)
from ..core import dao
from ..core.config import VALID_CHAT_MODES, VERSION, debug_enabled
from ..core.db import health_check
from ..util.logging import logger

app = FastAPI(
    title="Knowledge Base Chat API",
    version=VERSION,
    description="Retrieval-augmented chat over a local segment index with local or hosted LLM backends",
    docs_url="/docs" if debug_enabled() else None,
    redoc_url="/redoc" if debug_enabled() else None
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", response_model=HealthResponse)
def health_check_endpoint(services: Services = Depends(get_services)):
    """Check system health."""
    db_health = health_check()
    segment_count = dao.get_segment_count() if db_health else 0

    return HealthResponse(
        status="healthy" if db_health else "unhealthy",
        version=VERSION,
        db_health=db_health,
        segment_count=segment_count,
        indexed_vectors=len(services.semantic_memory.vector_store),
        active_sessions=len(services.sessions),
        index=services.semantic_memory.get_stats(),
        sessions=services.sessions.get_stats(),
        llm=services.registry.status()
    )


# Chat

@app.get("/api/chat/ping", response_class=PlainTextResponse)
def ping():
    return "pong"


@app.post("/api/chat", response_model=ChatResponse)
def chat(request: ChatRequest,
         services: Services = Depends(get_services),
         x_user_id: Optional[str] = Header(default=None)):
    """Answer a question, continuing the given session or starting a new one."""
    if not request.question or not request.question.strip():
        raise HTTPException(status_code=400, detail="question cannot be empty")

    result = services.orchestrator.answer(request.question, request.session_id, user_id=x_user_id)
    return ChatResponse(
        answer=result.answer,
        session_id=result.session_id,
        intent=result.intent,
        status=result.status
    )


# Configuration

@app.get("/api/config/chat-mode", response_model=ChatModeResponse)
def get_chat_mode(services: Services = Depends(get_services)):
    return ChatModeResponse(mode=services.registry.mode.get(), available_modes=list(VALID_CHAT_MODES))


@app.post("/api/config/chat-mode", response_model=ChatModeResponse)
def set_chat_mode(request: ChatModeRequest, services: Services = Depends(get_services)):
    try:
        mode = services.registry.mode.set(request.mode)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ChatModeResponse(mode=mode, available_modes=list(VALID_CHAT_MODES))


# Knowledge base

@app.post("/api/knowledge/documents", response_model=DocumentIngestResponse)
def ingest_document(request: DocumentIngestRequest,
                    services: Services = Depends(get_services),
                    x_user_id: Optional[str] = Header(default=None)):
    """Store a plain text document, split it into segments and index them."""
    if not request.text.strip():
        raise HTTPException(status_code=400, detail="text cannot be empty")

    try:
        result = services.knowledge.ingest_text(request.filename, request.text, user_id=x_user_id)
    except Exception:
        logger.exception(f"Document ingest failed for {request.filename}")
        raise HTTPException(status_code=500, detail="Document ingest failed")

    return DocumentIngestResponse(
        document_id=result.document_id,
        segment_ids=result.segment_ids,
        indexed_ids=result.indexed_ids,
        failed_ids=result.failed_ids
    )


@app.get("/api/knowledge/documents/{document_id}/segments", response_model=SegmentListResponse)
def list_document_segments(document_id: int, services: Services = Depends(get_services)):
    if dao.find_document(document_id) is None:
        raise HTTPException(status_code=404, detail=f"Document {document_id} not found")

    segments = services.knowledge.get_segments(document_id)
    return SegmentListResponse(
        document_id=document_id,
        segments=[
            SegmentResponse(
                id=segment.id,
                document_id=segment.document_id,
                content=segment.content,
                has_vector=segment.vector is not None
            )
            for segment in segments
        ]
    )


@app.post("/api/knowledge/segments/{segment_id}/index", response_model=SegmentIndexResponse)
def index_segment(segment_id: int, request: Optional[SegmentIndexRequest] = None,
                  services: Services = Depends(get_services)):
    """Re-embed a segment, replacing its stored content first when new content is sent."""
    segment = dao.find_segment(segment_id)
    if segment is None:
        raise HTTPException(status_code=404, detail=f"Segment {segment_id} not found")

    if request is not None and request.content is not None:
        if not request.content.strip():
            raise HTTPException(status_code=400, detail="content cannot be empty")
        segment.content = request.content
        dao.save_segment(segment)

    indexed = services.semantic_memory.index(segment_id, segment.content)
    return SegmentIndexResponse(segment_id=segment_id, indexed=indexed)


@app.post("/api/knowledge/reindex", response_model=ReindexResponse)
def reindex_all(services: Services = Depends(get_services)):
    """Re-embed every stored segment with the active embedding provider."""
    return ReindexResponse(**services.semantic_memory.reindex_all())
