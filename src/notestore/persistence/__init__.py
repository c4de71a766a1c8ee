"""Persistence layer for the relational store.

This module provides:
- Async PostgreSQL engine construction
- SQLAlchemy tables for objects, metadata and headers
- Idempotent schema initialisation
"""

from notestore.persistence.db import create_engine, init_schema, to_async_url
from notestore.persistence.tables import (
    Base,
    ObjectHeaderTable,
    ObjectMetadataTable,
    ObjectTable,
)

__all__ = [
    # DB
    "create_engine",
    "init_schema",
    "to_async_url",
    # Tables
    "Base",
    "ObjectTable",
    "ObjectMetadataTable",
    "ObjectHeaderTable",
]
