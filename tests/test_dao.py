"""
Tests for the SQLite persistence layer.
"""

from datetime import datetime

from kbchat.core import dao
from kbchat.core.db import health_check, init_db
from kbchat.core.schema import ChatRecord, Document, Segment


def test_init_db_is_idempotent(temp_db):
    init_db()
    assert health_check() is True


def test_health_check_fails_without_tables(tmp_path):
    assert health_check(str(tmp_path / "empty.db")) is False


def test_document_round_trip(temp_db):
    document_id = dao.save_document(Document(id=None, filename="notes.txt", user_id="u1"))

    document = dao.find_document(document_id)
    assert document.filename == "notes.txt"
    assert document.user_id == "u1"
    assert isinstance(document.uploaded_at, datetime)
    assert dao.find_document(9999) is None


def test_segments_by_document_and_count(temp_db):
    doc_a = dao.save_document(Document(id=None, filename="a.txt"))
    doc_b = dao.save_document(Document(id=None, filename="b.txt"))
    a1 = dao.save_segment(Segment(id=None, document_id=doc_a, content="a1"))
    a2 = dao.save_segment(Segment(id=None, document_id=doc_a, content="a2"))
    dao.save_segment(Segment(id=None, document_id=doc_b, content="b1"))

    assert [s.id for s in dao.find_segments_by_document_id(doc_a)] == [a1, a2]
    assert dao.get_segment_count() == 3
    assert len(dao.find_all_segments()) == 3


def test_find_segments_by_ids_keeps_requested_order(temp_db):
    ids = [dao.save_segment(Segment(id=None, document_id=None, content=f"s{n}")) for n in range(3)]

    found = dao.find_segments_by_ids([ids[2], 12345, ids[0]])

    assert [s.content for s in found] == ["s2", "s0"]
    assert dao.find_segments_by_ids([]) == []


def test_update_segment_vector(temp_db):
    segment_id = dao.save_segment(Segment(id=None, document_id=None, content="text"))

    assert dao.update_segment_vector(segment_id, b"\x3f\x80\x00\x00") is True
    assert dao.find_segment(segment_id).vector == b"\x3f\x80\x00\x00"
    assert dao.update_segment_vector(999, b"\x00\x00\x00\x00") is False


def test_save_segment_updates_existing(temp_db):
    segment = Segment(id=None, document_id=None, content="before")
    segment_id = dao.save_segment(segment)
    segment.content = "after"

    assert dao.save_segment(segment) == segment_id
    assert dao.find_segment(segment_id).content == "after"


def test_chat_records_by_session(temp_db):
    dao.save_chat_record(ChatRecord(session_id="s1", question="q1", answer="a1", user_id="u1"))
    dao.save_chat_record(ChatRecord(session_id="s2", question="other", answer="x"))
    record = ChatRecord(session_id="s1", question="q2", answer="a2")
    record_id = dao.save_chat_record(record)

    assert record.id == record_id
    assert record.created_at == record.updated_at

    records = dao.list_chats_by_session("s1")
    assert [(r.question, r.answer) for r in records] == [("q1", "a1"), ("q2", "a2")]
    assert records[0].user_id == "u1"
    assert records[1].user_id is None
