"""Conversion between stored bytes and caller-facing text.

Compressed objects are gzip streams of the UTF-8 encoded text.
"""

from __future__ import annotations

import gzip


def to_bytes(raw: str | bytes, compressed: bool = False) -> bytes:
    """Encode content for storage.

    Bytes are stored as given; text is UTF-8 encoded and gzip compressed
    when ``compressed`` is set.
    """
    if isinstance(raw, bytes):
        return raw
    data = raw.encode("utf-8")
    if compressed:
        return gzip.compress(data)
    return data


def to_str(buffer: bytes, compressed: bool = False) -> str:
    """Decode stored bytes into text."""
    if compressed:
        buffer = gzip.decompress(buffer)
    # Attachments may hold arbitrary bytes
    return buffer.decode("utf-8", errors="replace")
