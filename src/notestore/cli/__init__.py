"""CLI commands for notestore.

Provides command-line interface using Typer:
- notestore object: Inspect and modify stored objects
- notestore init-schema: Prepare the configured backend

Usage:
    notestore --help
    notestore object put notes/a --text hello --meta lang=en
    notestore object get notes/a
    notestore object sign-url notes/a --expires 60
    notestore init-schema
"""

import typer

from notestore.cli.object_cmd import app as object_app
from notestore.cli.schema_cmd import app as schema_app

# Main CLI application
app = typer.Typer(
    name="notestore",
    help="notestore: storage backends for notes and attachments",
    no_args_is_help=True,
)

app.add_typer(object_app, name="object")
app.add_typer(schema_app, name="init-schema")


@app.callback()
def callback(
    log_level: str | None = typer.Option(
        None, "--log-level", "-l", help="Log level (default: LOG_LEVEL)"
    ),
    json_logs: bool | None = typer.Option(
        None, "--json-logs/--console-logs", help="Log format (default: LOG_FORMAT)"
    ),
) -> None:
    """notestore: storage backends for notes and attachments."""
    from notestore.config import Settings
    from notestore.observability.logging import configure_logging

    settings = Settings()
    if json_logs is None:
        json_logs = settings.log_format == "json"
    configure_logging(json_format=json_logs, level=log_level or settings.log_level)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
