"""Tests for the notestore CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from notestore.cli import app
from notestore.storage.base import ObjectOptions
from tests.fakes import MemoryStore

runner = CliRunner()


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch) -> MemoryStore:
    memory = MemoryStore(prefix="ns")

    async def create_store() -> MemoryStore:
        return memory

    monkeypatch.setattr("notestore.cli.object_cmd.create_store", create_store)
    monkeypatch.setattr("notestore.cli.schema_cmd.create_store", create_store)
    # Keep the root logger untouched by the CLI callback
    monkeypatch.setattr("notestore.observability.logging.configure_logging", lambda **kw: None)
    return memory


def test_put_then_get(store: MemoryStore) -> None:
    result = runner.invoke(app, ["object", "put", "notes/a", "--text", "hello", "-m", "lang=en"])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["object", "get", "notes/a"])
    assert result.exit_code == 0
    assert result.stdout.strip() == "hello"
    assert store.closed is True


def test_put_from_file_with_headers(store: MemoryStore, tmp_path: Path) -> None:
    attachment = tmp_path / "img.png"
    attachment.write_bytes(b"\x89PNG")

    result = runner.invoke(
        app,
        [
            "object",
            "put",
            "attachments/img.png",
            "--file",
            str(attachment),
            "--content-type",
            "image/png",
            "--cache-control",
            "public, max-age=60",
        ],
    )

    assert result.exit_code == 0, result.output
    raw, options = store.objects["ns/attachments/img.png"]
    assert raw == b"\x89PNG"
    assert options.content_type == "image/png"
    assert options.headers is not None
    assert options.headers.cache_control == "public, max-age=60"


def test_put_requires_exactly_one_source(store: MemoryStore) -> None:
    result = runner.invoke(app, ["object", "put", "notes/a"])
    assert result.exit_code != 0


def test_meta_prints_json(store: MemoryStore) -> None:
    store.objects["ns/notes/a"] = ("hello", ObjectOptions(meta={"b": "2", "a": "1"}))

    result = runner.invoke(app, ["object", "meta", "notes/a"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"a": "1", "b": "2"}


def test_missing_object_exits_nonzero(store: MemoryStore) -> None:
    assert runner.invoke(app, ["object", "get", "notes/missing"]).exit_code == 1
    assert runner.invoke(app, ["object", "meta", "notes/missing"]).exit_code == 1


def test_has(store: MemoryStore) -> None:
    assert runner.invoke(app, ["object", "has", "notes/a"]).stdout.strip() == "false"
    store.objects["ns/notes/a"] = ("hello", ObjectOptions())
    assert runner.invoke(app, ["object", "has", "notes/a"]).stdout.strip() == "true"


def test_copy_missing_source_fails(store: MemoryStore) -> None:
    result = runner.invoke(app, ["object", "copy", "notes/missing", "notes/b"])
    assert result.exit_code == 1
    assert "ns/notes/b" not in store.objects


def test_copy_and_delete(store: MemoryStore) -> None:
    store.objects["ns/notes/a"] = ("hello", ObjectOptions(meta={"k": "v"}))

    assert runner.invoke(app, ["object", "copy", "notes/a", "notes/b"]).exit_code == 0
    assert store.objects["ns/notes/b"][1].meta == {"k": "v"}

    assert runner.invoke(app, ["object", "delete", "notes/a"]).exit_code == 0
    assert runner.invoke(app, ["object", "delete", "notes/a"]).exit_code == 0
    assert "ns/notes/a" not in store.objects


def test_sign_url_without_support(store: MemoryStore) -> None:
    result = runner.invoke(app, ["object", "sign-url", "notes/a"])
    assert result.exit_code == 0
    assert "proxied" in result.output


def test_bad_meta_pair(store: MemoryStore) -> None:
    result = runner.invoke(app, ["object", "put", "notes/a", "--text", "x", "-m", "novalue"])
    assert result.exit_code != 0


def test_init_schema(store: MemoryStore) -> None:
    result = runner.invoke(app, ["init-schema"])
    assert result.exit_code == 0
    assert "memory store ready" in result.output


def test_init_schema_reports_setup_failure(store: MemoryStore) -> None:
    store.setup_error = ConnectionRefusedError("connection refused")

    result = runner.invoke(app, ["init-schema"])

    assert result.exit_code == 1
    assert "connection refused" in result.output
    assert "ready" not in result.output
    assert store.closed is True


@pytest.fixture
def logging_calls(monkeypatch: pytest.MonkeyPatch, store: MemoryStore) -> list[dict[str, object]]:
    calls: list[dict[str, object]] = []
    monkeypatch.setattr(
        "notestore.observability.logging.configure_logging", lambda **kw: calls.append(kw)
    )
    return calls


def test_logging_follows_environment(
    monkeypatch: pytest.MonkeyPatch, logging_calls: list[dict[str, object]]
) -> None:
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("LOG_FORMAT", "console")

    assert runner.invoke(app, ["object", "has", "notes/a"]).exit_code == 0

    assert logging_calls == [{"json_format": False, "level": "DEBUG"}]


def test_logging_options_override_environment(
    monkeypatch: pytest.MonkeyPatch, logging_calls: list[dict[str, object]]
) -> None:
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("LOG_FORMAT", "console")

    result = runner.invoke(
        app, ["--log-level", "ERROR", "--json-logs", "object", "has", "notes/a"]
    )

    assert result.exit_code == 0
    assert logging_calls == [{"json_format": True, "level": "ERROR"}]
