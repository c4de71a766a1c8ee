"""Object store module for notestore.

Persists named binary objects (note bodies, attachments, metadata) behind
one interface with interchangeable backends:
- S3-compatible blob storage (AWS S3, MinIO)
- PostgreSQL (objects, metadata and headers as rows)
"""

from notestore.storage.base import ObjectAndMeta, ObjectHeaders, ObjectOptions, StoreProvider
from notestore.storage.errors import (
    ObjectNotFoundError,
    StoreConfigurationError,
    StoreError,
    StoreOperationError,
)
from notestore.storage.factory import build_store, create_store
from notestore.storage.paths import resolve_path
from notestore.storage.postgresql import PostgreSQLStore
from notestore.storage.s3 import S3Store

__all__ = [
    "StoreProvider",
    "ObjectOptions",
    "ObjectHeaders",
    "ObjectAndMeta",
    "S3Store",
    "PostgreSQLStore",
    "build_store",
    "create_store",
    "resolve_path",
    "StoreError",
    "ObjectNotFoundError",
    "StoreOperationError",
    "StoreConfigurationError",
]
