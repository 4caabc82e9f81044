"""ragdesk CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from ragdesk.cli.ask import ask_cmd
from ragdesk.cli.crawl import crawl_cmd
from ragdesk.cli.ingest import ingest_cmd, ingest_page_cmd
from ragdesk.cli.status import status_cmd


def _version() -> str:
    try:
        return importlib.metadata.version("ragdesk")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"ragdesk {_version()}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    """Route library logging through rich on stderr."""
    handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    # LiteLLM and urllib3 are noisy at DEBUG; keep them at WARNING.
    for name in ("LiteLLM", "litellm", "httpx", "httpcore", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)


app = typer.Typer(
    name="ragdesk",
    help=(
        "ragdesk — index documents and websites, then ask questions about them.\n\n"
        "  ragdesk ingest     Index PDF, DOCX, XLS(X), CSV, and text files.\n"
        "  ragdesk crawl      Index every page under a base URL.\n"
        "  ragdesk ask        Answer a question from the indexed chunks."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
) -> None:
    """ragdesk — retrieval-augmented Q&A over your documents."""
    _configure_logging(verbose)


app.command("ingest")(ingest_cmd)
app.command("ingest-page")(ingest_page_cmd)
app.command("crawl")(crawl_cmd)
app.command("ask")(ask_cmd)
app.command("status")(status_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed ragdesk version."""
    typer.echo(f"ragdesk {_version()}")


if __name__ == "__main__":
    app()
