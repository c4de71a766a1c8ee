"""Store factory."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from notestore.storage.base import StoreProvider
from notestore.storage.postgresql import PostgreSQLStore
from notestore.storage.s3 import S3Store

if TYPE_CHECKING:
    from notestore.config import PostgreSQLStoreConfig, S3StoreConfig

logger = logging.getLogger(__name__)


def build_store(config: S3StoreConfig | PostgreSQLStoreConfig) -> StoreProvider:
    """Construct the store backend selected by ``config.type``."""
    if config.type == "postgresql":
        store: StoreProvider = PostgreSQLStore(
            connection_string=config.connection_string,
            prefix=config.prefix,
        )
    else:
        store = S3Store(
            bucket=config.bucket,
            endpoint=config.endpoint,
            region=config.region,
            prefix=config.prefix,
            access_key=config.access_key,
            secret_key=config.secret_key,
            detect_credentials=config.detect_credentials,
            force_path_style=config.force_path_style,
            proxy_attachments=config.proxy_attachments,
        )
    logger.info("Using %s store", store.backend, extra={"backend": store.backend})
    return store


async def create_store(
    config: S3StoreConfig | PostgreSQLStoreConfig | None = None,
) -> StoreProvider:
    """Build and initialize a store.

    Call once at process start and pass the instance to its consumers.
    Configuration is loaded from the environment when not given.
    """
    if config is None:
        from notestore.config import Settings

        config = Settings().store_config()
    store = build_store(config)
    await store.initialize()
    return store
