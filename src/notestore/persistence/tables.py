"""SQLAlchemy tables for the relational store.

An object is one row in ``objects`` plus any number of rows in
``object_metadata`` and ``object_headers``. Both child tables reference
``objects.path`` with ON DELETE CASCADE, so deleting the object row removes
everything attached to it.
"""

from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, LargeBinary, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class ObjectTable(Base):
    """Stored object content.

    ``path`` already includes the configured prefix.
    """

    __tablename__ = "objects"

    path: Mapped[str] = mapped_column(Text, primary_key=True)
    content: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    content_type: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_compressed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class ObjectMetadataTable(Base):
    """Arbitrary key/value metadata owned by an object."""

    __tablename__ = "object_metadata"

    path: Mapped[str] = mapped_column(
        Text, ForeignKey("objects.path", ondelete="CASCADE"), primary_key=True
    )
    key: Mapped[str] = mapped_column(Text, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)


class ObjectHeaderTable(Base):
    """Header overrides (cacheControl, contentDisposition, contentEncoding)."""

    __tablename__ = "object_headers"

    path: Mapped[str] = mapped_column(
        Text, ForeignKey("objects.path", ondelete="CASCADE"), primary_key=True
    )
    header_type: Mapped[str] = mapped_column(Text, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
