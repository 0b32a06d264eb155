"""
Persisted record types for documents, segments and chat transcripts.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Document:
    id: Optional[int]
    filename: str
    user_id: Optional[str] = None
    uploaded_at: Optional[datetime] = None


@dataclass
class Segment:
    id: Optional[int]
    document_id: Optional[int]
    content: str
    vector: Optional[bytes] = None  # big-endian float32 bytes, see vector.serialization


@dataclass
class ChatRecord:
    session_id: str
    question: str
    answer: str
    user_id: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
