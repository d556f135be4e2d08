from __future__ import annotations

import base64
import binascii

from fiply.errors import MalformedCursorError


def encode_cursor(point_in_time: int) -> str:
    """Seconds since epoch -> base64 of its decimal string (the feed's `after` value)."""
    if point_in_time < 0:
        raise ValueError(f"point in time must be non-negative, got {point_in_time}")
    return base64.b64encode(str(int(point_in_time)).encode("ascii")).decode("ascii")


def decode_cursor(cursor: str) -> int:
    """
    Inverse of encode_cursor. Raises MalformedCursorError unless the token is
    valid base64 wrapping a plain run of decimal digits.
    """
    if not isinstance(cursor, str) or not cursor:
        raise MalformedCursorError(f"empty or non-text cursor: {cursor!r}")
    try:
        raw = base64.b64decode(cursor, validate=True)
        text = raw.decode("ascii")
    except (binascii.Error, ValueError) as e:
        raise MalformedCursorError(f"cursor {cursor!r} is not base64 ascii") from e

    # int() would also accept "+12", " 12" or "1_2"
    if not text.isdigit():
        raise MalformedCursorError(f"cursor {cursor!r} decodes to {text!r}, not an epoch second")
    try:
        return int(text)
    except ValueError as e:
        # longer than the interpreter's int string conversion limit
        raise MalformedCursorError(f"cursor {cursor!r} decodes to a {len(text)}-digit number") from e
