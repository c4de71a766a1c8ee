"""Base store interface.

Defines the object model and the abstract interface every store backend
implements. Callers (note persistence, attachment handling, export) only talk
to StoreProvider.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, fields

from notestore.storage.paths import resolve_path

# Header type names as persisted by the relational backend
HEADER_TYPES: dict[str, str] = {
    "cache_control": "cacheControl",
    "content_disposition": "contentDisposition",
    "content_encoding": "contentEncoding",
}


@dataclass
class ObjectHeaders:
    """Optional HTTP header overrides stored with an object."""

    cache_control: str | None = None
    content_disposition: str | None = None
    content_encoding: str | None = None

    def to_rows(self) -> dict[str, str]:
        """Return the set headers keyed by persisted header type."""
        return {
            HEADER_TYPES[f.name]: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name)
        }

    @classmethod
    def from_rows(cls, rows: dict[str, str]) -> ObjectHeaders:
        """Build headers from persisted header type -> value pairs."""
        by_type = {header_type: name for name, header_type in HEADER_TYPES.items()}
        return cls(**{by_type[k]: v for k, v in rows.items() if k in by_type})


@dataclass
class ObjectOptions:
    """Options accepted by put_object and copy_object."""

    content_type: str | None = None
    meta: dict[str, str] | None = None
    headers: ObjectHeaders | None = None


@dataclass
class ObjectAndMeta:
    """Combined result of get_object_and_meta.

    An instance with every field unset means the object does not exist.
    """

    content: str | None = None
    meta: dict[str, str] | None = None
    content_type: str | None = None
    buffer: bytes | None = None

    def __bool__(self) -> bool:
        return self.buffer is not None


class StoreProvider(ABC):
    """Abstract base class for store backends."""

    backend: str = ""

    def __init__(self, prefix: str = ""):
        self.prefix = prefix
        # Set by initialize() when backend setup failed
        self.setup_error: Exception | None = None

    def get_path(self, *paths: str) -> str:
        """Resolve a logical path to the fully-qualified storage key."""
        return resolve_path(self.prefix, *paths)

    async def initialize(self) -> None:
        """Prepare the backend. Called once after construction."""

    async def close(self) -> None:
        """Release backend resources."""

    @abstractmethod
    async def get_sign_url(self, path: str, expires: int = 600) -> str:
        """Return a time-limited URL for direct client access.

        Returns an empty string when the backend cannot sign URLs; callers
        must then proxy the content themselves.
        """
        ...

    @abstractmethod
    async def has_object(self, path: str) -> bool:
        """Check whether an object exists."""
        ...

    @abstractmethod
    async def get_object(self, path: str, is_compressed: bool = False) -> str | None:
        """Return decoded object content, or None if absent.

        ``is_compressed`` is combined with the stored compression flag.
        """
        ...

    @abstractmethod
    async def get_object_meta(self, path: str) -> dict[str, str] | None:
        """Return object metadata, or None if absent."""
        ...

    @abstractmethod
    async def get_object_headers(self, path: str) -> ObjectHeaders | None:
        """Return stored header overrides, or None if absent."""
        ...

    @abstractmethod
    async def get_object_and_meta(
        self, path: str, is_compressed: bool = False
    ) -> ObjectAndMeta:
        """Fetch content, metadata and content type in one call.

        Returns an empty ObjectAndMeta when the object does not exist.
        """
        ...

    @abstractmethod
    async def put_object(
        self,
        path: str,
        raw: str | bytes,
        options: ObjectOptions | None = None,
        is_compressed: bool = False,
    ) -> None:
        """Store an object, replacing content, metadata and headers wholesale."""
        ...

    @abstractmethod
    async def delete_object(self, path: str) -> None:
        """Delete an object. Deleting a missing object is not an error."""
        ...

    @abstractmethod
    async def copy_object(
        self, from_path: str, to_path: str, options: ObjectOptions | None = None
    ) -> None:
        """Duplicate an object under a new path.

        Metadata and headers not overridden in ``options`` are copied from
        the source.

        Raises:
            ObjectNotFoundError: If the source does not exist
        """
        ...
