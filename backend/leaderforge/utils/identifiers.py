from __future__ import annotations

import os
import time
import uuid


def generate_uuid7() -> str:
    """
    Time-ordered UUIDv7 string, used as the key for Bold Actions and standups
    so that rows created later also sort later.

    Layout: 48-bit Unix milliseconds, 4-bit version, 2-bit variant, rest random.
    """
    millis = int(time.time() * 1000)
    raw = bytearray(millis.to_bytes(6, "big", signed=False) + os.urandom(10))
    raw[6] = 0x70 | (raw[6] & 0x0F)
    raw[8] = 0x80 | (raw[8] & 0x3F)
    return str(uuid.UUID(bytes=bytes(raw)))
