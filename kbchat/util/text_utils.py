"""
Text helpers for knowledge ingest.
"""

from typing import List


def chunk_text(text: str, max_chunk_chars: int) -> List[str]:
    """
    Split text into consecutive slices of at most max_chunk_chars characters.

    No overlap and no word or sentence boundary handling: the last slice holds
    whatever remains.
    """
    if max_chunk_chars < 1:
        raise ValueError("max_chunk_chars must be >= 1")
    if not text:
        return []

    return [text[start:start + max_chunk_chars] for start in range(0, len(text), max_chunk_chars)]
