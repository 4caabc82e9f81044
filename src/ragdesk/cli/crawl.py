"""ragdesk crawl — index every reachable page under a base URL.

The crawl runs to completion first; pages are then ingested one by one, each
under its own URL as source label.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from ragdesk.cli.common import (
    load_cfg,
    make_ingestor,
    open_store,
    require_api_key,
    store_path,
)
from ragdesk.cli.errors import EXIT_CODES, err_no_content, fail
from ragdesk.errors import RagdeskError, ValidationError
from ragdesk.ingest.pipeline import IngestReport
from ragdesk.web.crawler import Crawler
from ragdesk.web.fetch import PageFetcher, validate_scheme

console = Console()


def crawl_cmd(
    url: Annotated[str, typer.Argument(help="Base URL; only links starting with it are followed.")],
    max_pages: Annotated[
        int | None,
        typer.Option("--max-pages", "-n", min=1, help="Stop after this many pages (default: crawl.max_pages)."),
    ] = None,
    store: Annotated[
        Path | None,
        typer.Option("--store", help="Chunk store file (default: store.path from config)."),
    ] = None,
) -> None:
    """Crawl a website and index every page found."""
    cfg = load_cfg(console)
    try:
        if not url.strip():
            raise ValidationError("No URL provided.")
        validate_scheme(url)
    except RagdeskError as exc:
        fail(console, exc)

    chunk_store = open_store(console, store_path(cfg, store))
    require_api_key(console, cfg.embedding.model)
    ingestor = make_ingestor(cfg, chunk_store)

    crawler = Crawler(
        PageFetcher(timeout=cfg.crawl.timeout, allow_private_hosts=cfg.crawl.allow_private_hosts),
        max_pages=cfg.crawl.max_pages,
    )

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
        console=console,
    ) as prog:
        prog.add_task(f"Crawling {url}…", total=None)
        pages = crawler.crawl(url, max_pages=max_pages)

    if not pages:
        console.print(err_no_content(url))
        raise typer.Exit(EXIT_CODES["validation"])

    console.print(f"  [green]✓[/] {len(pages)} pages crawled")

    latest = IngestReport()
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            transient=True,
            console=console,
        ) as prog:
            task = prog.add_task("Embedding…", total=len(pages))

            def _on_page(report: IngestReport) -> None:
                nonlocal latest
                latest = report
                prog.update(task, completed=report.pages_indexed)

            report = ingestor.ingest_pages(pages, on_page=_on_page)
    except RagdeskError as exc:
        console.print(
            f"  [yellow]Stopped after {latest.pages_indexed} of {len(pages)} pages "
            f"({latest.total_chunks} chunks stored).[/]"
        )
        fail(console, exc)

    console.print(
        f"[green]✓[/] Full website indexed: {report.pages_indexed} pages, "
        f"{report.total_chunks} chunks"
    )
