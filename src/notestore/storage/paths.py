"""Object path resolution.

Maps a logical, namespace-relative path to the fully-qualified storage key.
"""

from __future__ import annotations


def resolve_path(prefix: str, *paths: str) -> str:
    """Join a prefix and path segments into a storage key.

    Empty segments are dropped and each segment is stripped of surrounding
    slashes, so ``resolve_path("notea/", "/notes/a")`` is ``"notea/notes/a"``.
    """
    parts = [part.strip("/") for part in (prefix, *paths)]
    return "/".join(part for part in parts if part)
