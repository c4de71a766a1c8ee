from __future__ import annotations

import logging
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from notestore.storage.errors import StoreConfigurationError

logger = logging.getLogger(__name__)

STORE_TYPES = ("s3", "postgresql")


class S3StoreConfig(BaseModel):
    """Blob store (S3-compatible) configuration."""

    type: Literal["s3"] = "s3"
    access_key: str | None = None
    secret_key: str | None = None
    detect_credentials: bool = True
    bucket: str = "notea"
    endpoint: str = Field(min_length=1)
    region: str = "us-east-1"
    force_path_style: bool = False
    prefix: str = ""
    proxy_attachments: bool = False

    @model_validator(mode="after")
    def check_credentials(self) -> S3StoreConfig:
        if not self.detect_credentials:
            missing = [
                name
                for name, value in (("access_key", self.access_key), ("secret_key", self.secret_key))
                if not value
            ]
            if missing:
                raise ValueError(
                    f"{', '.join(missing)} required when detect_credentials is disabled"
                )
        return self


class PostgreSQLStoreConfig(BaseModel):
    """Relational store (PostgreSQL) configuration."""

    type: Literal["postgresql"] = "postgresql"
    connection_string: str = Field(min_length=1)
    prefix: str = ""


StoreConfig = Annotated[Union[S3StoreConfig, PostgreSQLStoreConfig], Field(discriminator="type")]

_store_config_adapter: TypeAdapter[S3StoreConfig | PostgreSQLStoreConfig] = TypeAdapter(StoreConfig)


def parse_store_config(data: dict[str, object]) -> S3StoreConfig | PostgreSQLStoreConfig:
    """Validate raw store configuration into its tagged variant.

    Missing or unknown types fall back to "s3".

    Raises:
        StoreConfigurationError: If the selected variant is invalid
    """
    data = dict(data)
    store_type = data.get("type")
    if store_type not in STORE_TYPES:
        if store_type:
            logger.warning("Unknown store type %r, falling back to s3", store_type)
        data["type"] = "s3"
    try:
        return _store_config_adapter.validate_python(data)
    except ValidationError as err:
        raise StoreConfigurationError(f"Invalid {data['type']} store configuration: {err}") from err


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Store selection
    store_type: str = Field(default="s3", validation_alias="STORE_TYPE")
    store_prefix: str = Field(default="", validation_alias="STORE_PREFIX")

    # S3 store (when store_type="s3")
    store_access_key: str | None = Field(default=None, validation_alias="STORE_ACCESS_KEY")
    store_secret_key: str | None = Field(default=None, validation_alias="STORE_SECRET_KEY")
    store_detect_credentials: bool = Field(
        default=True, validation_alias="STORE_DETECT_CREDENTIALS"
    )
    store_bucket: str = Field(default="notea", validation_alias="STORE_BUCKET")
    store_endpoint: str | None = Field(default=None, validation_alias="STORE_END_POINT")
    store_region: str = Field(default="us-east-1", validation_alias="STORE_REGION")
    store_force_path_style: bool = Field(default=False, validation_alias="STORE_FORCE_PATH_STYLE")
    store_proxy_attachments: bool = Field(
        default=False, validation_alias="DIRECT_RESPONSE_ATTACHMENT"
    )

    # PostgreSQL store (when store_type="postgresql")
    store_connection_string: str | None = Field(
        default=None, validation_alias="STORE_CONNECTION_STRING"
    )

    # Observability
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: Literal["json", "console"] = Field(default="json", validation_alias="LOG_FORMAT")

    def store_config(self) -> S3StoreConfig | PostgreSQLStoreConfig:
        """Build the validated store configuration variant."""
        if self.store_type == "postgresql":
            return parse_store_config(
                {
                    "type": "postgresql",
                    "connection_string": self.store_connection_string or "",
                    "prefix": self.store_prefix,
                }
            )
        return parse_store_config(
            {
                "type": self.store_type,
                "access_key": self.store_access_key,
                "secret_key": self.store_secret_key,
                "detect_credentials": self.store_detect_credentials,
                "bucket": self.store_bucket,
                "endpoint": self.store_endpoint or "",
                "region": self.store_region,
                "force_path_style": self.store_force_path_style,
                "prefix": self.store_prefix,
                "proxy_attachments": self.store_proxy_attachments,
            }
        )
