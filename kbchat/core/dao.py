"""
Persistence collaborator for documents, segments and chat records.

Write failures raise sqlite3.Error; callers decide whether a failed write is
fatal (it never is for vector writes or transcripts, which are best-effort).
"""

from datetime import datetime
from typing import List, Optional, Sequence

from .db import get_db
from .schema import ChatRecord, Document, Segment


def _parse_ts(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _row_to_segment(row) -> Segment:
    seg_id, document_id, content, vector = row
    return Segment(
        id=seg_id,
        document_id=document_id,
        content=content,
        vector=bytes(vector) if vector is not None else None
    )


# Documents

def save_document(document: Document) -> int:
    """Insert a document row and return its id."""
    uploaded_at = document.uploaded_at or datetime.now()
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            "INSERT INTO documents (filename, user_id, uploaded_at) VALUES (?, ?, ?)",
            (document.filename, document.user_id, uploaded_at.isoformat())
        )
        conn.commit()
        document.id = cursor.lastrowid
        document.uploaded_at = uploaded_at
        return document.id


def find_document(document_id: int) -> Optional[Document]:
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT id, filename, user_id, uploaded_at FROM documents WHERE id = ?",
            (document_id,)
        )
        row = cursor.fetchone()
        if not row:
            return None
        return Document(id=row[0], filename=row[1], user_id=row[2], uploaded_at=_parse_ts(row[3]))


# Segments

def save_segment(segment: Segment) -> int:
    """Insert a new segment, or update content/vector of an existing one. Returns the id."""
    with get_db() as conn:
        cursor = conn.cursor()
        if segment.id is None:
            cursor.execute(
                "INSERT INTO segments (document_id, content, vector) VALUES (?, ?, ?)",
                (segment.document_id, segment.content, segment.vector)
            )
            segment.id = cursor.lastrowid
        else:
            cursor.execute(
                "UPDATE segments SET document_id = ?, content = ?, vector = ? WHERE id = ?",
                (segment.document_id, segment.content, segment.vector, segment.id)
            )
        conn.commit()
        return segment.id


def update_segment_vector(segment_id: int, vector: Optional[bytes]) -> bool:
    """Attach serialized vector bytes to a segment, or clear them with None. Returns False if the segment does not exist."""
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("UPDATE segments SET vector = ? WHERE id = ?", (vector, segment_id))
        conn.commit()
        return cursor.rowcount > 0


def find_segment(segment_id: int) -> Optional[Segment]:
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT id, document_id, content, vector FROM segments WHERE id = ?", (segment_id,))
        row = cursor.fetchone()
        return _row_to_segment(row) if row else None


def find_all_segments() -> List[Segment]:
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT id, document_id, content, vector FROM segments ORDER BY id")
        return [_row_to_segment(row) for row in cursor.fetchall()]


def find_segments_by_ids(ids: Sequence[int]) -> List[Segment]:
    """Fetch segments for the given ids, returned in the order of ids. Unknown ids are skipped."""
    if not ids:
        return []

    placeholders = ",".join("?" for _ in ids)
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            f"SELECT id, document_id, content, vector FROM segments WHERE id IN ({placeholders})",
            tuple(ids)
        )
        by_id = {row[0]: _row_to_segment(row) for row in cursor.fetchall()}

    return [by_id[segment_id] for segment_id in ids if segment_id in by_id]


def find_segments_by_document_id(document_id: int) -> List[Segment]:
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT id, document_id, content, vector FROM segments WHERE document_id = ? ORDER BY id",
            (document_id,)
        )
        return [_row_to_segment(row) for row in cursor.fetchall()]


def get_segment_count() -> int:
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT COUNT(*) FROM segments")
        return cursor.fetchone()[0]


# Chat transcript

def save_chat_record(record: ChatRecord) -> int:
    """Append a chat record. Timestamps default to now."""
    now = datetime.now()
    created_at = record.created_at or now
    updated_at = record.updated_at or created_at

    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            "INSERT INTO chats (user_id, session_id, question, answer, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (record.user_id, record.session_id, record.question, record.answer,
             created_at.isoformat(), updated_at.isoformat())
        )
        conn.commit()
        record.id = cursor.lastrowid
        record.created_at = created_at
        record.updated_at = updated_at
        return record.id


def list_chats_by_session(session_id: str) -> List[ChatRecord]:
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(
            "SELECT id, user_id, session_id, question, answer, created_at, updated_at "
            "FROM chats WHERE session_id = ? ORDER BY created_at, id",
            (session_id,)
        )
        return [
            ChatRecord(
                id=row[0],
                user_id=row[1],
                session_id=row[2],
                question=row[3],
                answer=row[4],
                created_at=_parse_ts(row[5]),
                updated_at=_parse_ts(row[6])
            )
            for row in cursor.fetchall()
        ]
