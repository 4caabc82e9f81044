"""Ingestion orchestrator: chunk → embed → record → append + persist.

Ingestion of one text is all-or-nothing: the embedding step either returns a
vector for every window or raises, and only then is the store touched. The
store appends and persists under its own lock.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from ragdesk.errors import ValidationError
from ragdesk.ingest.chunker import DEFAULT_CHUNK_SIZE, DEFAULT_OVERLAP, chunk_text
from ragdesk.ingest.embedder import EmbeddingClient
from ragdesk.store.chunk_store import ChunkStore
from ragdesk.store.models import Chunk, make_chunk_id
from ragdesk.web.crawler import Page

logger = logging.getLogger(__name__)


@dataclass
class IngestReport:
    """Outcome of a multi-page ingestion."""

    pages_indexed: int = 0
    total_chunks: int = 0


def _now_ms() -> int:
    return int(time.time() * 1000)


class Ingestor:
    """Turn raw text into persisted, embedded chunks.

    Args:
        store:      Target chunk store (the only writer is this class).
        embedder:   Batched embedding client.
        chunk_size: Window size in characters.
        overlap:    Characters shared between consecutive windows.
        clock:      Millisecond timestamp source for chunk IDs.
    """

    def __init__(
        self,
        store: ChunkStore,
        embedder: EmbeddingClient,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: int = DEFAULT_OVERLAP,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.chunk_size = chunk_size
        self.overlap = overlap
        self._clock = clock

    def ingest(self, text: str, source: str) -> int:
        """Index *text* under *source*. Returns the number of chunks created.

        Raises:
            ValidationError: If *text* is empty or whitespace-only.
            EmbeddingError: If the provider fails (store unchanged).
            StorageError: If the snapshot cannot be written (store unchanged).
        """
        if not text or not text.strip():
            raise ValidationError(f"No text to ingest from source '{source}'.")

        windows = chunk_text(text, self.chunk_size, self.overlap)
        vectors = self.embedder.embed_batch(windows)

        stamp = self._clock()
        chunks = [
            Chunk(id=make_chunk_id(source, stamp, i), text=window, embedding=vector, source=source)
            for i, (window, vector) in enumerate(zip(windows, vectors, strict=True))
        ]
        self.store.append(chunks)
        logger.info("Ingested %d chunks from %s", len(chunks), source)
        return len(chunks)

    def ingest_pages(
        self,
        pages: Iterable[Page],
        on_page: Callable[[IngestReport], None] | None = None,
    ) -> IngestReport:
        """Ingest crawled *pages* one by one, each under its own URL.

        *on_page* receives the running report after every page. Pages ingested
        before a failure stay stored; the failure propagates.
        """
        report = IngestReport()
        for page in pages:
            report.total_chunks += self.ingest(page.text, page.url)
            report.pages_indexed += 1
            if on_page is not None:
                on_page(report)
        return report
