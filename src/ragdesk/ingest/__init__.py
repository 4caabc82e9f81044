"""ragdesk ingest pipeline — extractors, chunker, embedding client, orchestrator."""

from ragdesk.ingest.chunker import chunk_text
from ragdesk.ingest.embedder import EmbeddingClient, EmbeddingConfig
from ragdesk.ingest.extractors import extract_text
from ragdesk.ingest.pipeline import IngestReport, Ingestor

__all__ = [
    "EmbeddingClient",
    "EmbeddingConfig",
    "IngestReport",
    "Ingestor",
    "chunk_text",
    "extract_text",
]
