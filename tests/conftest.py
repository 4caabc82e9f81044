"""Shared pytest fixtures."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from ragdesk.ingest.embedder import EmbeddingClient
from ragdesk.store.chunk_store import ChunkStore


@pytest.fixture
def store_path(tmp_path):
    """Path to a not-yet-created chunk snapshot in tmp_path."""
    return tmp_path / "chunks.json"


@pytest.fixture
def store(store_path):
    """Empty store backed by a file in tmp_path."""
    return ChunkStore.open(store_path)


@pytest.fixture
def fake_embedder():
    """EmbeddingClient stand-in returning a constant 2-d vector per text."""
    embedder = MagicMock(spec=EmbeddingClient)
    embedder.embed_batch.side_effect = lambda texts: [[1.0, 0.0] for _ in texts]
    embedder.embed.return_value = [1.0, 0.0]
    return embedder

