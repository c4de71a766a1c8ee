"""CLI command for preparing the configured store.

Usage:
    notestore init-schema
"""

from __future__ import annotations

import asyncio

import typer

from notestore.storage import StoreError, create_store

app = typer.Typer(help="Prepare the configured store backend")


@app.callback(invoke_without_command=True)
def init_schema() -> None:
    """Connect to the configured store and create its schema if needed."""
    asyncio.run(_init_schema())


async def _init_schema() -> None:
    from rich.console import Console

    console = Console()
    try:
        store = await create_store()
    except StoreError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from e
    try:
        if store.setup_error is not None:
            console.print(f"[red]Error:[/red] {store.backend} setup failed: {store.setup_error}")
            raise typer.Exit(code=1)
        console.print(f"[green]✓[/green] {store.backend} store ready")
    finally:
        await store.close()
