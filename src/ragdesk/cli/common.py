"""Helpers shared by CLI commands: config, store, and client construction."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from ragdesk.cli.errors import EXIT_CODES, err_corrupt_store, err_no_api_key, fail
from ragdesk.config import ConfigError, RagdeskConfig, load_config
from ragdesk.errors import StorageError
from ragdesk.ingest.embedder import EmbeddingClient, EmbeddingConfig
from ragdesk.ingest.pipeline import Ingestor
from ragdesk.rag.llm_client import provider_of, validate_api_key
from ragdesk.store.chunk_store import ChunkStore


def load_cfg(console: Console) -> RagdeskConfig:
    try:
        return load_config()
    except ConfigError as exc:
        fail(console, exc)


def store_path(cfg: RagdeskConfig, override: Path | None) -> Path:
    """CLI flag wins over config/env."""
    return override if override is not None else Path(cfg.store.path)


def open_store(console: Console, path: Path) -> ChunkStore:
    """Load the snapshot at *path*; exit with a storage error if it is corrupt."""
    try:
        return ChunkStore.open(path)
    except StorageError as exc:
        console.print(err_corrupt_store(str(path), str(exc)))
        raise typer.Exit(EXIT_CODES["storage"])


def require_api_key(console: Console, model: str) -> None:
    try:
        validate_api_key(model)
    except EnvironmentError:
        console.print(err_no_api_key(provider_of(model)))
        raise typer.Exit(EXIT_CODES["validation"])


def make_embedder(cfg: RagdeskConfig) -> EmbeddingClient:
    e = cfg.embedding
    return EmbeddingClient(
        EmbeddingConfig(
            model=e.model,
            batch_size=e.batch_size,
            batch_pause=e.batch_pause,
            timeout=e.timeout,
            num_retries=e.num_retries,
        )
    )


def make_ingestor(cfg: RagdeskConfig, store: ChunkStore) -> Ingestor:
    return Ingestor(
        store,
        make_embedder(cfg),
        chunk_size=cfg.chunking.chunk_size,
        overlap=cfg.chunking.overlap,
    )
