"""Tests for engine construction helpers."""

import pytest

from notestore.persistence.db import create_engine, to_async_url


@pytest.mark.parametrize(
    ("connection_string", "expected"),
    [
        ("postgresql://u:p@db:5432/notea", "postgresql+asyncpg://u:p@db:5432/notea"),
        ("postgres://u:p@db/notea", "postgresql+asyncpg://u:p@db/notea"),
        ("postgresql+asyncpg://u:p@db/notea", "postgresql+asyncpg://u:p@db/notea"),
    ],
)
def test_to_async_url(connection_string: str, expected: str) -> None:
    assert to_async_url(connection_string) == expected


def test_create_engine_is_lazy() -> None:
    """Building the engine does not connect."""
    engine = create_engine("postgresql://u:p@unreachable.invalid/notea")
    assert engine.url.host == "unreachable.invalid"
    assert engine.url.drivername == "postgresql+asyncpg"
