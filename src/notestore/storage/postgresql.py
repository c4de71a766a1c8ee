"""PostgreSQL-backed store.

Objects are rows across three tables (content, metadata, headers). Writes that
touch more than one table run in a single transaction so an object is either
fully replaced or left exactly as it was.

There is no per-path locking: two concurrent writers to the same path both
commit and the last commit wins.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import delete, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import ArgumentError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from notestore.persistence.db import create_engine, init_schema
from notestore.persistence.tables import ObjectHeaderTable, ObjectMetadataTable, ObjectTable
from notestore.storage.base import ObjectAndMeta, ObjectHeaders, ObjectOptions, StoreProvider
from notestore.storage.codec import to_bytes, to_str
from notestore.storage.errors import (
    ObjectNotFoundError,
    StoreConfigurationError,
    StoreOperationError,
)

logger = logging.getLogger(__name__)


class PostgreSQLStore(StoreProvider):
    """Relational store implementation.

    Uses a pooled SQLAlchemy async engine (asyncpg driver). Every acquired
    connection is closed, returning it to the pool, on every exit path.
    """

    backend = "postgresql"

    def __init__(
        self,
        connection_string: str,
        prefix: str = "",
        engine: AsyncEngine | None = None,
    ):
        """Initialize the relational store.

        Args:
            connection_string: PostgreSQL connection string
            prefix: Key prefix applied to every path
            engine: Pre-built engine (optional, built from connection_string)

        Raises:
            StoreConfigurationError: If the connection string is unusable
        """
        super().__init__(prefix)
        if engine is None:
            if not connection_string:
                raise StoreConfigurationError("PostgreSQL connection string is required")
            try:
                engine = create_engine(connection_string)
            except (ArgumentError, ImportError) as err:
                raise StoreConfigurationError(
                    f"Invalid PostgreSQL connection string: {err}"
                ) from err
        self._engine = engine
        self._initialized = False

    async def initialize(self) -> None:
        """Create the schema if needed.

        Failures are logged and kept in ``setup_error``, not raised: the schema
        may already exist from a previous run or a replica starting at the
        same time.
        """
        if self._initialized:
            return
        self._initialized = True
        try:
            await init_schema(self._engine)
            self.setup_error = None
            logger.info("Store schema initialized", extra={"backend": self.backend})
        except Exception as err:
            self.setup_error = err
            logger.exception("Store schema initialization failed", extra={"backend": self.backend})

    async def close(self) -> None:
        """Dispose the connection pool."""
        await self._engine.dispose()

    # -------------------------------------------------------------------------
    # Connection handling
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[AsyncConnection]:
        """Acquire a pooled connection and always release it."""
        conn = await self._engine.connect()
        try:
            yield conn
        finally:
            await conn.close()

    @asynccontextmanager
    async def _transaction(self, operation: str, path: str) -> AsyncIterator[AsyncConnection]:
        """Run the body inside one transaction.

        Commits on success. On any failure the transaction is rolled back, the
        failure logged, and the error re-raised (wrapped in StoreOperationError
        unless it is an ObjectNotFoundError).
        """
        try:
            async with self._connection() as conn:
                trans = await conn.begin()
                try:
                    yield conn
                    await trans.commit()
                except Exception:
                    await trans.rollback()
                    raise
        except ObjectNotFoundError:
            self._log_failure(operation, path)
            raise
        except Exception as err:
            self._log_failure(operation, path)
            raise StoreOperationError(operation, path, self.backend, str(err)) from err

    def _log_failure(self, operation: str, path: str) -> None:
        logger.exception(
            "%s failed for %s",
            operation,
            path,
            extra={"operation": operation, "path": path, "backend": self.backend},
        )

    # -------------------------------------------------------------------------
    # Row helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _upsert(key: str, content: bytes, content_type: str | None, is_compressed: bool):
        stmt = pg_insert(ObjectTable).values(
            path=key,
            content=content,
            content_type=content_type,
            is_compressed=is_compressed,
        )
        return stmt.on_conflict_do_update(
            index_elements=[ObjectTable.path],
            set_={
                "content": stmt.excluded.content,
                "content_type": stmt.excluded.content_type,
                "is_compressed": stmt.excluded.is_compressed,
            },
        )

    @staticmethod
    async def _read_row(conn: AsyncConnection, key: str):
        stmt = select(
            ObjectTable.content, ObjectTable.content_type, ObjectTable.is_compressed
        ).where(ObjectTable.path == key)
        result = await conn.execute(stmt)
        return result.first()

    @staticmethod
    async def _exists(conn: AsyncConnection, key: str) -> bool:
        result = await conn.execute(select(ObjectTable.path).where(ObjectTable.path == key))
        return result.first() is not None

    @staticmethod
    async def _read_meta(conn: AsyncConnection, key: str) -> dict[str, str]:
        stmt = select(ObjectMetadataTable.key, ObjectMetadataTable.value).where(
            ObjectMetadataTable.path == key
        )
        result = await conn.execute(stmt)
        return {meta_key: value for meta_key, value in result.all()}

    @staticmethod
    async def _read_headers(conn: AsyncConnection, key: str) -> dict[str, str]:
        stmt = select(ObjectHeaderTable.header_type, ObjectHeaderTable.value).where(
            ObjectHeaderTable.path == key
        )
        result = await conn.execute(stmt)
        return {header_type: value for header_type, value in result.all()}

    @staticmethod
    async def _replace_meta(conn: AsyncConnection, key: str, meta: dict[str, str]) -> None:
        await conn.execute(delete(ObjectMetadataTable).where(ObjectMetadataTable.path == key))
        if meta:
            await conn.execute(
                insert(ObjectMetadataTable),
                [{"path": key, "key": k, "value": v} for k, v in meta.items()],
            )

    @staticmethod
    async def _replace_headers(conn: AsyncConnection, key: str, headers: dict[str, str]) -> None:
        await conn.execute(delete(ObjectHeaderTable).where(ObjectHeaderTable.path == key))
        if headers:
            await conn.execute(
                insert(ObjectHeaderTable),
                [{"path": key, "header_type": k, "value": v} for k, v in headers.items()],
            )

    # -------------------------------------------------------------------------
    # Read operations
    # -------------------------------------------------------------------------

    async def get_sign_url(self, path: str, expires: int = 600) -> str:
        """No signed URLs; content is always proxied through the application."""
        return ""

    async def has_object(self, path: str) -> bool:
        try:
            async with self._connection() as conn:
                return await self._exists(conn, self.get_path(path))
        except Exception:
            self._log_failure("has_object", path)
            return False

    async def get_object(self, path: str, is_compressed: bool = False) -> str | None:
        try:
            async with self._connection() as conn:
                row = await self._read_row(conn, self.get_path(path))
            if row is None:
                return None
            content, _, stored_compressed = row
            return to_str(content, stored_compressed or is_compressed)
        except Exception:
            self._log_failure("get_object", path)
            return None

    async def get_object_meta(self, path: str) -> dict[str, str] | None:
        key = self.get_path(path)
        try:
            async with self._connection() as conn:
                if not await self._exists(conn, key):
                    return None
                return await self._read_meta(conn, key)
        except Exception:
            self._log_failure("get_object_meta", path)
            return None

    async def get_object_and_meta(
        self, path: str, is_compressed: bool = False
    ) -> ObjectAndMeta:
        key = self.get_path(path)
        try:
            async with self._connection() as conn:
                row = await self._read_row(conn, key)
                if row is None:
                    return ObjectAndMeta()
                meta = await self._read_meta(conn, key)
            content, content_type, stored_compressed = row
            return ObjectAndMeta(
                content=to_str(content, stored_compressed or is_compressed),
                meta=meta,
                content_type=content_type,
                buffer=content,
            )
        except Exception:
            self._log_failure("get_object_and_meta", path)
            return ObjectAndMeta()

    async def get_object_headers(self, path: str) -> ObjectHeaders | None:
        """Return the header overrides stored with an object, or None if absent."""
        key = self.get_path(path)
        try:
            async with self._connection() as conn:
                if not await self._exists(conn, key):
                    return None
                return ObjectHeaders.from_rows(await self._read_headers(conn, key))
        except Exception:
            self._log_failure("get_object_headers", path)
            return None

    # -------------------------------------------------------------------------
    # Write operations
    # -------------------------------------------------------------------------

    async def put_object(
        self,
        path: str,
        raw: str | bytes,
        options: ObjectOptions | None = None,
        is_compressed: bool = False,
    ) -> None:
        options = options or ObjectOptions()
        key = self.get_path(path)
        content = to_bytes(raw, is_compressed)
        headers = options.headers.to_rows() if options.headers else {}

        async with self._transaction("put_object", path) as conn:
            await conn.execute(self._upsert(key, content, options.content_type, is_compressed))
            await self._replace_meta(conn, key, options.meta or {})
            await self._replace_headers(conn, key, headers)

    async def delete_object(self, path: str) -> None:
        # Metadata and header rows go with the object row (ON DELETE CASCADE)
        async with self._transaction("delete_object", path) as conn:
            await conn.execute(delete(ObjectTable).where(ObjectTable.path == self.get_path(path)))

    async def copy_object(
        self, from_path: str, to_path: str, options: ObjectOptions | None = None
    ) -> None:
        options = options or ObjectOptions()
        source = self.get_path(from_path)
        target = self.get_path(to_path)

        async with self._transaction("copy_object", f"{from_path} -> {to_path}") as conn:
            row = await self._read_row(conn, source)
            if row is None:
                raise ObjectNotFoundError(from_path)
            content, content_type, is_compressed = row

            meta = options.meta if options.meta else await self._read_meta(conn, source)
            if options.headers is not None:
                headers = options.headers.to_rows()
            else:
                headers = await self._read_headers(conn, source)

            await conn.execute(
                self._upsert(target, content, options.content_type or content_type, is_compressed)
            )
            await self._replace_meta(conn, target, meta)
            await self._replace_headers(conn, target, headers)
