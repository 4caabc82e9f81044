"""ragdesk ask — answer a question from the indexed chunks."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.progress import Progress, SpinnerColumn, TextColumn

from ragdesk.cli.common import load_cfg, make_embedder, open_store, require_api_key, store_path
from ragdesk.cli.errors import EXIT_CODES, err_empty_store, fail
from ragdesk.errors import RagdeskError, ValidationError
from ragdesk.rag.answer import AnswerConfig, answer_question

console = Console()


def ask_cmd(
    question: Annotated[str, typer.Argument(help="Question to answer from the indexed data.")],
    top_k: Annotated[
        int | None,
        typer.Option("--top-k", "-k", min=1, help="Context chunks to retrieve (default: retrieval.top_k)."),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help='Print {"answer": ..., "sources": [...]} instead of rich output.'),
    ] = False,
    store: Annotated[
        Path | None,
        typer.Option("--store", help="Chunk store file (default: store.path from config)."),
    ] = None,
) -> None:
    """Retrieve the most relevant chunks and ask the LLM to answer from them."""
    cfg = load_cfg(console)
    if not question.strip():
        fail(console, ValidationError("No question provided."))

    path = store_path(cfg, store)
    chunk_store = open_store(console, path)
    if len(chunk_store) == 0:
        console.print(err_empty_store(str(path)))
        raise typer.Exit(EXIT_CODES["validation"])

    require_api_key(console, cfg.embedding.model)
    require_api_key(console, cfg.generation.model)

    config = AnswerConfig(
        model=cfg.generation.model,
        top_k=top_k if top_k is not None else cfg.retrieval.top_k,
        max_tokens=cfg.generation.max_tokens,
        timeout=cfg.generation.timeout,
        num_retries=cfg.generation.num_retries,
    )

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            console=console,
        ) as prog:
            prog.add_task("Thinking…", total=None)
            result = answer_question(question, chunk_store, make_embedder(cfg), config)
    except RagdeskError as exc:
        fail(console, exc)

    if as_json:
        typer.echo(json.dumps({"answer": result.answer, "sources": result.sources}))
        return

    console.print(Markdown(result.answer))
    console.print("\n[bold]Sources[/]")
    for scored in result.chunks:
        console.print(f"  [dim]{scored.score:.3f}[/]  {scored.chunk.id}")
