"""
Byte layout for persisted vectors: each component is a 4-byte big-endian
IEEE-754 float32, concatenated in dimension order (length = 4 * D).
"""

from typing import Optional, Sequence, Union

import numpy as np

_WIRE_DTYPE = np.dtype(">f4")


def serialize_vector(vector: Union[np.ndarray, Sequence[float]]) -> bytes:
    """Serialize a vector to big-endian float32 bytes."""
    return np.asarray(vector, dtype=np.float32).astype(_WIRE_DTYPE).tobytes()


def deserialize_vector(data: Optional[bytes]) -> Optional[np.ndarray]:
    """Rebuild a native float32 vector from stored bytes. Returns None for None."""
    if data is None:
        return None
    if len(data) % 4 != 0:
        raise ValueError(f"Vector byte length {len(data)} is not a multiple of 4")

    return np.frombuffer(data, dtype=_WIRE_DTYPE).astype(np.float32)
