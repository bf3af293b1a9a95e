"""Time-ordered call ids.

A call id is 16 bytes rendered as 26 Crockford base32 characters. The first
6 bytes hold the creation time in milliseconds since the epoch (big-endian),
the remaining 10 bytes are random. Because the alphabet is in ascending
ASCII order, string order equals byte order equals creation order.

The first 10 characters of an id carry only the timestamp (2 zero padding
bits followed by the 48 time bits).
"""

import secrets
from datetime import datetime, timedelta, timezone

ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
ID_BYTES = 16
ID_LENGTH = 26
TIME_BYTES = 6
TIME_LENGTH = 10
MAX_MILLIS = (1 << (TIME_BYTES * 8)) - 1

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_DECODE = {c: i for i, c in enumerate(ALPHABET)}


def to_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime. Naive values are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_millis(value: datetime) -> int:
    """Milliseconds since the epoch, truncated toward negative infinity."""
    return (to_utc(value) - EPOCH) // timedelta(milliseconds=1)


def encode_id(buf: bytes) -> str:
    """Render 16 raw id bytes as a 26 character string."""
    if len(buf) != ID_BYTES:
        raise ValueError(f"call id must be {ID_BYTES} bytes, got {len(buf)}")
    n = int.from_bytes(buf, "big")
    chars = []
    for _ in range(ID_LENGTH):
        chars.append(ALPHABET[n & 0x1F])
        n >>= 5
    return "".join(reversed(chars))


def decode_id(value: str) -> bytes:
    """Parse a 26 character id back into its 16 raw bytes."""
    if not is_time_ordered_id(value):
        raise ValueError(f"not a time-ordered call id: {value!r}")
    n = 0
    for c in value:
        n = (n << 5) | _DECODE[c]
    return n.to_bytes(ID_BYTES, "big")


def is_time_ordered_id(value: str) -> bool:
    """Check whether ``value`` has the time-prefixed id shape."""
    if len(value) != ID_LENGTH:
        return False
    if any(c not in _DECODE for c in value):
        return False
    # 130 bits of characters encode 128 bits, so the top 2 must be zero
    return _DECODE[value[0]] < 8


def time_buffer(value: datetime) -> bytes | None:
    """Build an id-shaped buffer holding only the time of ``value``.

    Returns None when the time cannot be represented in the id format.
    """
    ms = to_millis(value)
    if ms < 0 or ms > MAX_MILLIS:
        return None
    return ms.to_bytes(TIME_BYTES, "big") + bytes(ID_BYTES - TIME_BYTES)


def new_call_id(now: datetime | None = None) -> str:
    """Generate a new call id for the given creation time (default: now)."""
    buf = time_buffer(now or datetime.now(timezone.utc))
    if buf is None:
        raise ValueError("creation time is outside the call id range")
    return encode_id(buf[:TIME_BYTES] + secrets.token_bytes(ID_BYTES - TIME_BYTES))


def call_id_time(value: str) -> datetime:
    """Extract the creation time embedded in a call id."""
    ms = int.from_bytes(decode_id(value)[:TIME_BYTES], "big")
    return EPOCH + timedelta(milliseconds=ms)
