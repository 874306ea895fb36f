"""Strongly typed identifiers for comment entities.

Using NewType for strong typing prevents mixing up different entity IDs
and makes the code more self-documenting.
"""

import os
import time
from typing import NewType
from uuid import UUID, uuid4

CommentId = NewType("CommentId", UUID)
LikeId = NewType("LikeId", UUID)

# Users are owned by the host application; we only keep a reference
UserId = NewType("UserId", UUID)


def ordered_uuid() -> UUID:
    """Generate a time-ordered UUID (version 7 layout).

    The first 48 bits hold the Unix timestamp in milliseconds, so ids
    generated later sort after ids generated earlier.
    """
    timestamp_ms = time.time_ns() // 1_000_000
    rand = int.from_bytes(os.urandom(10), "big")

    value = (timestamp_ms & 0xFFFF_FFFF_FFFF) << 80
    value |= 0x7 << 76  # version
    value |= ((rand >> 62) & 0xFFF) << 64  # rand_a
    value |= 0b10 << 62  # variant
    value |= rand & 0x3FFF_FFFF_FFFF_FFFF  # rand_b
    return UUID(int=value)


def new_uuid(ordered: bool = False) -> UUID:
    """Generate a new entity id.

    Args:
        ordered: Use a time-ordered UUID instead of a random one

    Returns:
        New UUID
    """
    return ordered_uuid() if ordered else uuid4()
