"""Async database engine construction for the relational store.

Provides PostgreSQL async connectivity using SQLAlchemy 2.0 asyncio
extension with asyncpg driver.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from notestore.persistence.tables import Base

ASYNC_SCHEME = "postgresql+asyncpg://"


def to_async_url(connection_string: str) -> str:
    """Rewrite a plain PostgreSQL connection string for the asyncpg driver."""
    for scheme in ("postgresql://", "postgres://"):
        if connection_string.startswith(scheme):
            return ASYNC_SCHEME + connection_string[len(scheme) :]
    return connection_string


def create_engine(connection_string: str, echo: bool = False) -> AsyncEngine:
    """Create the pooled async engine for a connection string."""
    return create_async_engine(
        to_async_url(connection_string),
        pool_size=10,
        max_overflow=20,
        pool_timeout=30,
        pool_recycle=1800,  # Recycle connections after 30 minutes
        pool_pre_ping=True,  # Verify connection health
        echo=echo,
    )


async def init_schema(engine: AsyncEngine) -> None:
    """Create the store tables if they do not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
