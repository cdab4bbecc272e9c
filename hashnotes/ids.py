"""Sortable, collision-resistant record IDs.

An ID looks like ``n_1C4hKX9...``: a lowercase letter prefix naming the record
type, an underscore, and a base58 rendering of a UUIDv7. UUIDv7 keeps the unix
millisecond timestamp in its high bits, so IDs of the same length compare in
creation order.
"""
from __future__ import annotations

import os
import threading
import time
import uuid

from .errors import IDGenerationError, InvalidPrefixError

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

_COUNTER_MAX = 0xFFF
_lock = threading.Lock()
_last_ms = 0
_counter = 0


def base58_encode(data: bytes) -> str:
    """Encode bytes with the Bitcoin base58 alphabet (leading zero bytes -> '1')."""
    num = int.from_bytes(data, "big")
    out = []
    while num > 0:
        num, rem = divmod(num, 58)
        out.append(BASE58_ALPHABET[rem])
    for b in data:
        if b != 0:
            break
        out.append("1")
    return "".join(reversed(out))


def _next_timestamp() -> tuple[int, int]:
    """Return (unix_ms, counter), strictly increasing within this process."""
    global _last_ms, _counter
    with _lock:
        now_ms = time.time_ns() // 1_000_000
        if now_ms > _last_ms:
            _last_ms = now_ms
            # leave headroom so same-millisecond calls can keep counting up
            _counter = int.from_bytes(os.urandom(2), "big") & 0x7FF
        else:
            # same millisecond or the clock stepped back
            _counter += 1
            if _counter > _COUNTER_MAX:
                _last_ms += 1
                _counter = 0
        return _last_ms, _counter


def uuid7() -> uuid.UUID:
    try:
        unix_ms, counter = _next_timestamp()
        rand_b = int.from_bytes(os.urandom(8), "big") & ((1 << 62) - 1)
    except NotImplementedError as e:
        raise IDGenerationError(f"random source unavailable: {e}") from e
    value = (unix_ms & ((1 << 48) - 1)) << 80
    value |= 0x7 << 76
    value |= counter << 64
    value |= 0b10 << 62
    value |= rand_b
    return uuid.UUID(int=value)


def generate_id(prefix: str) -> str:
    """Make a text ID for a new record, e.g. ``generate_id("n")``."""
    if not prefix:
        raise InvalidPrefixError("prefix can't be blank")
    if prefix.lower() != prefix:
        raise InvalidPrefixError("prefix must be lowercase")
    if not all(ch.isalpha() for ch in prefix):
        raise InvalidPrefixError("non letter character in prefix")
    return f"{prefix}_{base58_encode(uuid7().bytes)}"
