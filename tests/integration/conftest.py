"""Integration test fixtures using Docker.

Provides containerized PostgreSQL and MinIO for realistic testing.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from uuid import uuid4

import pytest
import pytest_asyncio

from notestore.storage.postgresql import PostgreSQLStore
from notestore.storage.s3 import S3Store
from tests.integration.docker_utils import ServiceAddress, running_service, wait_until_ready

MINIO_ACCESS_KEY = "minioadmin"
MINIO_SECRET_KEY = "minioadmin"


@pytest.fixture(scope="session")
def docker_client():
    """Create a Docker client or skip if Docker is unavailable."""
    try:
        import docker

        client = docker.from_env()
        client.ping()
    except Exception as exc:
        pytest.skip(f"Docker not available: {exc}")
    yield client
    client.close()


@pytest.fixture(scope="session")
def postgres_container(docker_client) -> Iterator[ServiceAddress]:
    """Start PostgreSQL container for the test session."""
    env = {
        "POSTGRES_USER": "notea",
        "POSTGRES_PASSWORD": "notea",
        "POSTGRES_DB": "notea",
    }
    with running_service(docker_client, "postgres:16-alpine", 5432, env=env) as postgres:
        yield postgres


@pytest.fixture(scope="session")
def minio_container(docker_client) -> Iterator[ServiceAddress]:
    """Start MinIO container for the test session."""
    env = {
        "MINIO_ROOT_USER": MINIO_ACCESS_KEY,
        "MINIO_ROOT_PASSWORD": MINIO_SECRET_KEY,
    }
    with running_service(
        docker_client,
        "minio/minio:latest",
        9000,
        env=env,
        command="server /data --console-address :9001",
    ) as minio:
        yield minio


@pytest.fixture(scope="session")
def connection_string(postgres_container: ServiceAddress) -> str:
    host, port = postgres_container.host, postgres_container.port
    return f"postgresql://notea:notea@{host}:{port}/notea"


@pytest.fixture(scope="session")
def minio_endpoint(minio_container: ServiceAddress) -> str:
    return f"http://{minio_container.host}:{minio_container.port}"


@pytest_asyncio.fixture
async def pg_store(connection_string: str) -> AsyncIterator[PostgreSQLStore]:
    """PostgreSQL store with a fresh prefix per test."""
    store = PostgreSQLStore(connection_string, prefix=f"test-{uuid4().hex[:8]}")

    async def connect() -> None:
        async with store._engine.connect():
            pass

    await wait_until_ready(connect)
    await store.initialize()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def s3_store(minio_endpoint: str) -> AsyncIterator[S3Store]:
    """S3 store against MinIO with a fresh bucket per test."""
    store = S3Store(
        bucket=f"notea-{uuid4().hex[:12]}",
        endpoint=minio_endpoint,
        prefix="notea",
        access_key=MINIO_ACCESS_KEY,
        secret_key=MINIO_SECRET_KEY,
        detect_credentials=False,
        force_path_style=True,
    )

    async def create_bucket() -> None:
        async with store._client() as s3:
            await s3.create_bucket(Bucket=store.bucket)

    await wait_until_ready(create_bucket)
    yield store
    await store.close()
