"""Sort keys for the frontier store.

The key that is used for storing URLs determines the order they are
crawled: lower keys are crawled earlier. Keys are 6 bytes:

    [priority][depth][docid, 4 bytes big-endian]

so URLs with lower priority numbers go first; within a priority, those
found at lower depths go first; within a depth, those discovered earlier
(smaller docid) go first. Docids are unique, so keys are unique too.
"""

import struct
from typing import Tuple

from ..models import UrlRecord

KEY_LENGTH = 6
MAX_DEPTH_BYTE = 127

_KEY = struct.Struct(">BBI")


def encode_key(record: UrlRecord) -> bytes:
    """Encode the (priority, depth, docid) sort key of a record.

    Priority is truncated to its low byte and depth is clamped to 127.
    """
    depth = min(record.depth, MAX_DEPTH_BYTE)
    return _KEY.pack(record.priority & 0xFF, depth, record.docid)


def decode_key(key: bytes) -> Tuple[int, int, int]:
    """Split a stored key back into (priority, depth, docid)."""
    if len(key) != KEY_LENGTH:
        raise ValueError(f"Frontier keys are {KEY_LENGTH} bytes, got {len(key)}")
    return _KEY.unpack(key)
