"""ragdesk status — summary of the chunk store and active configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ragdesk.cli.common import load_cfg, open_store, store_path

console = Console()


def status_cmd(
    store: Annotated[
        Path | None,
        typer.Option("--store", help="Chunk store file (default: store.path from config)."),
    ] = None,
) -> None:
    """Show the chunk store size, dimensionality, and per-source counts."""
    cfg = load_cfg(console)
    path = store_path(cfg, store)

    console.print(
        Panel(
            f"Store:       {path}\n"
            f"Embedding:   {cfg.embedding.model}\n"
            f"Generation:  {cfg.generation.model}\n"
            f"Chunking:    {cfg.chunking.chunk_size} chars / {cfg.chunking.overlap} overlap",
            title="[bold]Configuration[/]",
            expand=False,
        )
    )

    if not path.exists():
        console.print(
            Panel(
                "[yellow]No chunk store found.[/]\n"
                "  Run:  ragdesk ingest <file>  or  ragdesk crawl <url>",
                title="[bold]Knowledge Base[/]",
                expand=False,
            )
        )
        return

    chunk_store = open_store(console, path)
    dims = chunk_store.dimensions
    console.print(
        Panel(
            f"Chunks:      {len(chunk_store)}\n"
            f"Dimensions:  {dims if dims is not None else '-'}",
            title="[bold]Knowledge Base[/]",
            expand=False,
        )
    )

    counts = chunk_store.sources()
    if counts:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Source")
        table.add_column("Chunks", justify="right")
        for source, n in counts.most_common():
            table.add_row(source or "[dim](unlabelled)[/]", str(n))
        console.print(table)
