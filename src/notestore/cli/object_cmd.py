"""CLI commands for working with stored objects.

Usage:
    notestore object has notes/a
    notestore object get notes/a
    notestore object meta notes/a
    notestore object put notes/a --text hello --meta lang=en
    notestore object put attachments/img.png --file img.png --content-type image/png
    notestore object copy notes/a notes/b
    notestore object delete notes/a
    notestore object sign-url notes/a --expires 60
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TypeVar

import orjson
import typer
from rich.console import Console

from notestore.observability.logging import LogContext
from notestore.storage import (
    ObjectHeaders,
    ObjectOptions,
    StoreError,
    StoreProvider,
    create_store,
)

app = typer.Typer(help="Inspect and modify stored objects", no_args_is_help=True)

console = Console()

T = TypeVar("T")


def parse_meta(pairs: list[str] | None) -> dict[str, str] | None:
    """Parse repeated ``key=value`` options into a mapping."""
    if not pairs:
        return None
    meta: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got {pair!r}", param_hint="--meta")
        meta[key] = value
    return meta


def build_headers(
    cache_control: str | None,
    content_disposition: str | None,
    content_encoding: str | None,
) -> ObjectHeaders | None:
    if not (cache_control or content_disposition or content_encoding):
        return None
    return ObjectHeaders(
        cache_control=cache_control,
        content_disposition=content_disposition,
        content_encoding=content_encoding,
    )


@asynccontextmanager
async def open_store() -> AsyncIterator[StoreProvider]:
    store = await create_store()
    try:
        yield store
    finally:
        await store.close()


def run(operation: Callable[[StoreProvider], Awaitable[T]], command: str) -> T:
    """Run one store operation against the configured store."""

    async def _run() -> T:
        async with open_store() as store:
            return await operation(store)

    with LogContext(request_id=f"cli-{command}"):
        try:
            return asyncio.run(_run())
        except StoreError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(code=1) from e


@app.command("has")
def has(path: str = typer.Argument(..., help="Object path")) -> None:
    """Print whether an object exists."""
    exists = run(lambda store: store.has_object(path), "has")
    typer.echo("true" if exists else "false")


@app.command("get")
def get(
    path: str = typer.Argument(..., help="Object path"),
    compressed: bool = typer.Option(False, "--compressed", help="Decode as compressed"),
) -> None:
    """Print object content."""
    content = run(lambda store: store.get_object(path, compressed), "get")
    if content is None:
        console.print(f"[yellow]Not found:[/yellow] {path}")
        raise typer.Exit(code=1)
    typer.echo(content)


@app.command("meta")
def meta(path: str = typer.Argument(..., help="Object path")) -> None:
    """Print object metadata as JSON."""
    result = run(lambda store: store.get_object_meta(path), "meta")
    if result is None:
        console.print(f"[yellow]Not found:[/yellow] {path}")
        raise typer.Exit(code=1)
    typer.echo(orjson.dumps(result, option=orjson.OPT_SORT_KEYS).decode())


@app.command("put")
def put(
    path: str = typer.Argument(..., help="Object path"),
    text: str | None = typer.Option(None, "--text", "-t", help="Content as text"),
    file: Path | None = typer.Option(
        None, "--file", "-f", help="Read content from a file", exists=True, dir_okay=False
    ),
    content_type: str | None = typer.Option(None, "--content-type", help="MIME type"),
    meta_pairs: list[str] | None = typer.Option(None, "--meta", "-m", help="key=value metadata"),
    cache_control: str | None = typer.Option(None, "--cache-control"),
    content_disposition: str | None = typer.Option(None, "--content-disposition"),
    content_encoding: str | None = typer.Option(None, "--content-encoding"),
    compressed: bool = typer.Option(False, "--compressed", help="Store text compressed"),
) -> None:
    """Store an object, replacing any previous content, metadata and headers."""
    if (text is None) == (file is None):
        raise typer.BadParameter("Pass exactly one of --text or --file")
    raw: str | bytes = text if text is not None else file.read_bytes()  # type: ignore[union-attr]
    options = ObjectOptions(
        content_type=content_type,
        meta=parse_meta(meta_pairs),
        headers=build_headers(cache_control, content_disposition, content_encoding),
    )
    run(lambda store: store.put_object(path, raw, options, compressed), "put")
    console.print(f"[green]✓[/green] Stored {path}")


@app.command("delete")
def delete(path: str = typer.Argument(..., help="Object path")) -> None:
    """Delete an object (no error if it does not exist)."""
    run(lambda store: store.delete_object(path), "delete")
    console.print(f"[green]✓[/green] Deleted {path}")


@app.command("copy")
def copy(
    from_path: str = typer.Argument(..., help="Source path"),
    to_path: str = typer.Argument(..., help="Destination path"),
    content_type: str | None = typer.Option(None, "--content-type", help="Override MIME type"),
    meta_pairs: list[str] | None = typer.Option(
        None, "--meta", "-m", help="Replace metadata with key=value pairs"
    ),
) -> None:
    """Copy an object, keeping the source metadata unless overridden."""
    options = ObjectOptions(content_type=content_type, meta=parse_meta(meta_pairs))
    run(lambda store: store.copy_object(from_path, to_path, options), "copy")
    console.print(f"[green]✓[/green] Copied {from_path} -> {to_path}")


@app.command("sign-url")
def sign_url(
    path: str = typer.Argument(..., help="Object path"),
    expires: int = typer.Option(600, "--expires", "-e", help="Validity in seconds"),
) -> None:
    """Print a signed URL for direct download."""
    url = run(lambda store: store.get_sign_url(path, expires), "sign-url")
    if not url:
        console.print("[yellow]No signed URL available; content must be proxied[/yellow]")
        return
    typer.echo(url)
