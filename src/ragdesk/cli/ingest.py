"""ragdesk ingest / ingest-page — index documents and single web pages.

File dispatch by extension (or --type):
  .pdf                   → pypdf
  .docx                  → python-docx paragraphs
  .xlsx .xls             → worksheets rendered as CSV
  .csv .txt .log .report → read as text

Each file is ingested under its upper-cased extension as source label
(e.g. ``PDF``); a single page is ingested under the label ``website``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import SpinnerColumn, TextColumn, Progress

from ragdesk.cli.common import (
    load_cfg,
    make_ingestor,
    open_store,
    require_api_key,
    store_path,
)
from ragdesk.cli.errors import exit_code_for, err_from_exception, fail
from ragdesk.errors import RagdeskError, ValidationError
from ragdesk.ingest.extractors import extract_text, file_type_of
from ragdesk.web.crawler import page_body_text
from ragdesk.web.fetch import PageFetcher

console = Console()

_WEBSITE_SOURCE = "website"


def ingest_cmd(
    paths: Annotated[
        list[Path],
        typer.Argument(help="Document(s) to index."),
    ],
    file_type: Annotated[
        str | None,
        typer.Option("--type", "-t", help="Override the file type (pdf, docx, xlsx, xls, csv, txt, …)."),
    ] = None,
    store: Annotated[
        Path | None,
        typer.Option("--store", help="Chunk store file (default: store.path from config)."),
    ] = None,
) -> None:
    """Extract, chunk, embed, and store one or more documents."""
    cfg = load_cfg(console)
    chunk_store = open_store(console, store_path(cfg, store))
    require_api_key(console, cfg.embedding.model)
    ingestor = make_ingestor(cfg, chunk_store)

    failures = 0
    last_code = 0
    for path in paths:
        console.print(f"\n[bold]→ {path}[/]")
        ftype = (file_type or file_type_of(path)).lower()
        try:
            text = extract_text(path, ftype)
            if not text.strip():
                raise ValidationError(f"No text extracted from '{path}'.")
            with _spinner("Embedding…"):
                count = ingestor.ingest(text, ftype.upper())
        except RagdeskError as exc:
            console.print(f"  {err_from_exception(exc)}")
            failures += 1
            last_code = exit_code_for(exc)
            continue
        console.print(f"  [green]✓[/] File indexed: {count} chunks (type: {ftype})")

    if failures:
        raise typer.Exit(last_code)


def ingest_page_cmd(
    url: Annotated[str, typer.Argument(help="Web page to index (body text only).")],
    store: Annotated[
        Path | None,
        typer.Option("--store", help="Chunk store file (default: store.path from config)."),
    ] = None,
) -> None:
    """Fetch a single web page and index its visible body text."""
    cfg = load_cfg(console)
    if not url.strip():
        fail(console, ValidationError("No URL provided."))
    chunk_store = open_store(console, store_path(cfg, store))
    require_api_key(console, cfg.embedding.model)
    ingestor = make_ingestor(cfg, chunk_store)
    fetcher = PageFetcher(
        timeout=cfg.crawl.timeout, allow_private_hosts=cfg.crawl.allow_private_hosts
    )

    try:
        with _spinner(f"Fetching {url}…"):
            page = fetcher.fetch(url)
        text = page_body_text(page.body) if page.is_html else page.body.strip()
        if not text:
            raise ValidationError(f"No content found on website '{url}'.")
        with _spinner("Embedding…"):
            count = ingestor.ingest(text, _WEBSITE_SOURCE)
    except RagdeskError as exc:
        fail(console, exc)

    console.print(f"[green]✓[/] Website indexed: {count} chunks ({url})")


def _spinner(description: str) -> Progress:
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
        console=console,
    )
    progress.add_task(description, total=None)
    return progress
