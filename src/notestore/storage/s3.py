"""S3-compatible blob store backend.

Supports:
- AWS S3
- MinIO
- Any S3-compatible object storage

Content, metadata and headers of an object travel in a single PUT or COPY
request, so the provider's own atomicity covers each write.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, cast

from botocore.config import Config
from botocore.exceptions import ClientError

if TYPE_CHECKING:
    import aioboto3

from notestore.storage.base import ObjectAndMeta, ObjectHeaders, ObjectOptions, StoreProvider
from notestore.storage.codec import to_bytes, to_str
from notestore.storage.errors import (
    ObjectNotFoundError,
    StoreConfigurationError,
    StoreOperationError,
)

logger = logging.getLogger(__name__)

# ObjectHeaders field -> S3 request/response parameter
HEADER_PARAMS: dict[str, str] = {
    "cache_control": "CacheControl",
    "content_disposition": "ContentDisposition",
    "content_encoding": "ContentEncoding",
}

NOT_FOUND_CODES = {"NoSuchKey", "NotFound", "404"}


class S3Store(StoreProvider):
    """S3-compatible blob store implementation.

    Uses aioboto3 for async S3 operations.

    Configuration via:
    - bucket: S3 bucket name
    - endpoint: For non-AWS S3-compatible services
    - region: AWS region
    - prefix: Optional key prefix (e.g., "notea/")
    - credentials: explicit access_key/secret_key, or the AWS SDK default
      chain when detect_credentials is set

    Metadata goes into S3 user metadata, which providers return with
    lower-cased keys and which only carries ASCII values. Callers needing
    exact round trips on this backend should use lower-case ASCII keys and
    values.
    """

    backend = "s3"

    # Reserved user-metadata entries, never returned to callers
    COMPRESSED_META_KEY = "notestore-compressed"
    CONTENT_TYPE_META_KEY = "notestore-content-type"
    RESERVED_META_KEYS = (COMPRESSED_META_KEY, CONTENT_TYPE_META_KEY)

    def __init__(
        self,
        bucket: str,
        endpoint: str | None = None,
        region: str = "us-east-1",
        prefix: str = "",
        access_key: str | None = None,
        secret_key: str | None = None,
        detect_credentials: bool = True,
        force_path_style: bool = False,
        proxy_attachments: bool = False,
    ):
        """Initialize the S3 store.

        Args:
            bucket: S3 bucket name
            endpoint: Custom endpoint for S3-compatible services
            region: AWS region
            prefix: Key prefix for all objects (optional)
            access_key: Access key (optional when detecting credentials)
            secret_key: Secret key (optional when detecting credentials)
            detect_credentials: Fall back to the SDK credential chain
            force_path_style: Use path-style addressing (required by MinIO)
            proxy_attachments: Serve attachments through the application

        Raises:
            StoreConfigurationError: If credentials are required but missing
        """
        super().__init__(prefix)
        if not bucket:
            raise StoreConfigurationError("S3 bucket is required")
        if not detect_credentials and not (access_key and secret_key):
            raise StoreConfigurationError(
                "S3 access key and secret key are required when credential detection is disabled"
            )
        self.bucket = bucket
        self.endpoint = endpoint
        self.region = region
        self.access_key = access_key
        self.secret_key = secret_key
        self.detect_credentials = detect_credentials
        self.force_path_style = force_path_style
        self.proxy_attachments = proxy_attachments
        self._client_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path" if force_path_style else "auto"},
        )
        self._session: "aioboto3.Session | None" = None

    async def _get_session(self) -> "aioboto3.Session":
        """Get or create aioboto3 session."""
        if self._session is None:
            import aioboto3

            self._session = aioboto3.Session(
                aws_access_key_id=self.access_key,
                aws_secret_access_key=self.secret_key,
                region_name=self.region,
            )
        return self._session

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[Any]:
        session = await self._get_session()
        async with session.client(
            "s3",
            endpoint_url=self.endpoint,
            region_name=self.region,
            config=self._client_config,
        ) as s3:
            yield s3

    async def close(self) -> None:
        """Drop the S3 session."""
        # aioboto3 sessions don't need explicit closing
        self._session = None

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _is_not_found(err: ClientError) -> bool:
        return err.response.get("Error", {}).get("Code") in NOT_FOUND_CODES

    def _log_failure(self, operation: str, path: str) -> None:
        logger.exception(
            "%s failed for %s",
            operation,
            path,
            extra={"operation": operation, "path": path, "backend": self.backend},
        )

    def _user_meta(self, response: dict[str, Any]) -> dict[str, str]:
        meta = dict(response.get("Metadata") or {})
        for reserved in self.RESERVED_META_KEYS:
            meta.pop(reserved, None)
        return meta

    def _stored_compressed(self, response: dict[str, Any]) -> bool:
        return (response.get("Metadata") or {}).get(self.COMPRESSED_META_KEY) == "true"

    def _content_type(self, response: dict[str, Any]) -> str | None:
        """Content type set by the caller; providers fill in a default otherwise."""
        if (response.get("Metadata") or {}).get(self.CONTENT_TYPE_META_KEY) != "true":
            return None
        return cast("str | None", response.get("ContentType"))

    @staticmethod
    def _header_params(headers: ObjectHeaders | None) -> dict[str, str]:
        if headers is None:
            return {}
        return {
            param: getattr(headers, name)
            for name, param in HEADER_PARAMS.items()
            if getattr(headers, name)
        }

    @staticmethod
    def _headers_from(response: dict[str, Any]) -> ObjectHeaders:
        return ObjectHeaders(**{name: response.get(param) for name, param in HEADER_PARAMS.items()})

    async def _head(self, key: str) -> dict[str, Any] | None:
        """HEAD an object; None when it does not exist."""
        async with self._client() as s3:
            try:
                return cast(dict[str, Any], await s3.head_object(Bucket=self.bucket, Key=key))
            except ClientError as err:
                if self._is_not_found(err):
                    return None
                raise

    async def _fetch(self, key: str) -> tuple[bytes, dict[str, Any]] | None:
        """GET an object body and response; None when it does not exist."""
        async with self._client() as s3:
            try:
                response = await s3.get_object(Bucket=self.bucket, Key=key)
            except ClientError as err:
                if self._is_not_found(err):
                    return None
                raise
            async with response["Body"] as stream:
                data = await stream.read()
        return cast(bytes, data), response

    # -------------------------------------------------------------------------
    # Read operations
    # -------------------------------------------------------------------------

    async def get_sign_url(self, path: str, expires: int = 600) -> str:
        """Generate a presigned GET URL valid for ``expires`` seconds."""
        try:
            async with self._client() as s3:
                url = await s3.generate_presigned_url(
                    "get_object",
                    Params={"Bucket": self.bucket, "Key": self.get_path(path)},
                    ExpiresIn=expires,
                )
                return cast(str, url)
        except Exception:
            self._log_failure("get_sign_url", path)
            return ""

    async def has_object(self, path: str) -> bool:
        try:
            return await self._head(self.get_path(path)) is not None
        except Exception:
            self._log_failure("has_object", path)
            return False

    async def get_object(self, path: str, is_compressed: bool = False) -> str | None:
        try:
            fetched = await self._fetch(self.get_path(path))
            if fetched is None:
                return None
            data, response = fetched
            return to_str(data, self._stored_compressed(response) or is_compressed)
        except Exception:
            self._log_failure("get_object", path)
            return None

    async def get_object_meta(self, path: str) -> dict[str, str] | None:
        try:
            head = await self._head(self.get_path(path))
        except Exception:
            self._log_failure("get_object_meta", path)
            return None
        if head is None:
            return None
        return self._user_meta(head)

    async def get_object_headers(self, path: str) -> ObjectHeaders | None:
        try:
            head = await self._head(self.get_path(path))
        except Exception:
            self._log_failure("get_object_headers", path)
            return None
        if head is None:
            return None
        return self._headers_from(head)

    async def get_object_and_meta(
        self, path: str, is_compressed: bool = False
    ) -> ObjectAndMeta:
        try:
            fetched = await self._fetch(self.get_path(path))
            if fetched is None:
                return ObjectAndMeta()
            data, response = fetched
            return ObjectAndMeta(
                content=to_str(data, self._stored_compressed(response) or is_compressed),
                meta=self._user_meta(response),
                content_type=self._content_type(response),
                buffer=data,
            )
        except Exception:
            self._log_failure("get_object_and_meta", path)
            return ObjectAndMeta()

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
        meta = dict(options.meta or {})
        if is_compressed:
            meta[self.COMPRESSED_META_KEY] = "true"
        if options.content_type:
            meta[self.CONTENT_TYPE_META_KEY] = "true"

        params: dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": self.get_path(path),
            "Body": to_bytes(raw, is_compressed),
            "Metadata": meta,
        }
        if options.content_type:
            params["ContentType"] = options.content_type
        params.update(self._header_params(options.headers))

        try:
            async with self._client() as s3:
                await s3.put_object(**params)
        except Exception as err:
            self._log_failure("put_object", path)
            raise StoreOperationError("put_object", path, self.backend, str(err)) from err

    async def delete_object(self, path: str) -> None:
        # DeleteObject succeeds for missing keys
        try:
            async with self._client() as s3:
                await s3.delete_object(Bucket=self.bucket, Key=self.get_path(path))
        except Exception as err:
            self._log_failure("delete_object", path)
            raise StoreOperationError("delete_object", path, self.backend, str(err)) from err

    async def copy_object(
        self, from_path: str, to_path: str, options: ObjectOptions | None = None
    ) -> None:
        options = options or ObjectOptions()
        source = self.get_path(from_path)
        label = f"{from_path} -> {to_path}"

        try:
            head = await self._head(source)
            if head is None:
                raise ObjectNotFoundError(from_path)

            params: dict[str, Any] = {
                "Bucket": self.bucket,
                "Key": self.get_path(to_path),
                "CopySource": {"Bucket": self.bucket, "Key": source},
            }
            overridden = bool(
                options.content_type is not None or options.meta or options.headers is not None
            )
            # S3 rejects a COPY directive onto the source key itself
            if not overridden and params["Key"] != source:
                params["MetadataDirective"] = "COPY"
            else:
                # REPLACE drops everything not sent, so fill the gaps from the source
                meta = dict(options.meta) if options.meta else self._user_meta(head)
                if self._stored_compressed(head):
                    meta[self.COMPRESSED_META_KEY] = "true"
                content_type = options.content_type or self._content_type(head)
                if content_type:
                    params["ContentType"] = content_type
                    meta[self.CONTENT_TYPE_META_KEY] = "true"
                params["MetadataDirective"] = "REPLACE"
                params["Metadata"] = meta
                headers = options.headers if options.headers is not None else self._headers_from(head)
                params.update(self._header_params(headers))

            async with self._client() as s3:
                await s3.copy_object(**params)
        except ObjectNotFoundError:
            self._log_failure("copy_object", label)
            raise
        except Exception as err:
            self._log_failure("copy_object", label)
            raise StoreOperationError("copy_object", label, self.backend, str(err)) from err
