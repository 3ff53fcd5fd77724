from __future__ import annotations

import os
import time
from typing import List

_CROCKFORD32 = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"


def _encode_crockford(value: int, length: int) -> str:
    chars: List[str] = []
    for _ in range(length):
        chars.append(_CROCKFORD32[value & 31])
        value >>= 5
    return "".join(reversed(chars))


def new_ulid() -> str:
    # 48-bit time (ms) + 80-bit randomness; lexicographic order == creation order
    ms = int(time.time() * 1000) & ((1 << 48) - 1)
    rnd = int.from_bytes(os.urandom(10), "big")
    return _encode_crockford((ms << 80) | rnd, 26)


def movement_id() -> str:
    return f"movement_{new_ulid().lower()}"


def short_id(length: int = 8) -> str:
    """Random lowercase crockford id for media items."""
    return _encode_crockford(int.from_bytes(os.urandom(8), "big"), length).lower()
