"""JSON snapshot chunk store.

The whole collection lives in memory and is mirrored to a single JSON file.
Every ``append()`` rewrites the full snapshot: the new content goes to a
temporary file in the same directory which then replaces the old snapshot via
``os.replace()``, so readers never observe a half-written file.

Appends are serialized by a re-entrant lock; concurrent ingestions cannot
interleave their append + persist steps.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from collections import Counter
from pathlib import Path

from ragdesk.errors import StorageError
from ragdesk.store.models import Chunk

logger = logging.getLogger(__name__)


class ChunkStore:
    """Append-only, process-wide collection of indexed chunks."""

    def __init__(self, path: Path | str) -> None:
        """Store the snapshot path. Call load() to read existing chunks.

        Args:
            path: Snapshot file location (created on first persist).
        """
        self.path = Path(path)
        self._chunks: list[Chunk] = []
        self._lock = threading.RLock()

    @classmethod
    def open(cls, path: Path | str) -> ChunkStore:
        """Create a store for *path* and load its snapshot."""
        store = cls(path)
        store.load()
        return store

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def chunks(self) -> tuple[Chunk, ...]:
        """Snapshot of the stored chunks in insertion order."""
        with self._lock:
            return tuple(self._chunks)

    @property
    def dimensions(self) -> int | None:
        """Embedding dimensionality shared by all chunks, or None when empty."""
        with self._lock:
            return self._chunks[0].dimensions if self._chunks else None

    def sources(self) -> Counter[str]:
        """Return a count of chunks per source label."""
        with self._lock:
            return Counter(c.source for c in self._chunks)

    def __len__(self) -> int:
        with self._lock:
            return len(self._chunks)

    # ------------------------------------------------------------------
    # Load / append / persist
    # ------------------------------------------------------------------

    def load(self) -> list[Chunk]:
        """Replace the in-memory collection with the snapshot on disk.

        A missing file yields an empty store.

        Raises:
            StorageError: If the file cannot be read or is not a valid snapshot.
        """
        if not self.path.exists():
            with self._lock:
                self._chunks = []
            logger.debug("No snapshot at %s; starting empty", self.path)
            return []

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise StorageError(f"Cannot read chunk store '{self.path}': {exc}") from exc
        except json.JSONDecodeError as exc:
            raise StorageError(
                f"Chunk store '{self.path}' is not valid JSON "
                f"(line {exc.lineno}, column {exc.colno})."
            ) from exc

        if not isinstance(raw, list):
            raise StorageError(f"Chunk store '{self.path}' must contain a JSON array.")

        loaded: list[Chunk] = []
        for i, entry in enumerate(raw):
            if not isinstance(entry, dict):
                raise StorageError(f"Chunk store '{self.path}': entry {i} is not an object.")
            try:
                loaded.append(Chunk.from_dict(entry))
            except (KeyError, TypeError, ValueError) as exc:
                raise StorageError(
                    f"Chunk store '{self.path}': entry {i} is malformed ({exc})."
                ) from exc

        _check_dimensions(loaded, expected=None)

        with self._lock:
            self._chunks = loaded
        logger.debug("Loaded %d chunks from %s", len(loaded), self.path)
        return list(loaded)

    def append(self, chunks: list[Chunk]) -> None:
        """Append *chunks* and persist the full snapshot.

        If the snapshot cannot be written, the in-memory append is undone so
        memory and disk stay in agreement.

        Raises:
            StorageError: On dimensionality mismatch or write failure.
        """
        if not chunks:
            return
        with self._lock:
            _check_dimensions(chunks, expected=self.dimensions)
            mark = len(self._chunks)
            self._chunks.extend(chunks)
            try:
                self.persist()
            except StorageError:
                del self._chunks[mark:]
                raise

    def persist(self) -> None:
        """Write the full collection to disk, replacing the previous snapshot.

        Raises:
            StorageError: If the snapshot cannot be written.
        """
        with self._lock:
            payload = json.dumps([c.to_dict() for c in self._chunks], indent=2)
            directory = self.path.parent
            try:
                directory.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    prefix=f".{self.path.name}.", suffix=".tmp", dir=directory
                )
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as fh:
                        fh.write(payload)
                    os.replace(tmp_name, self.path)
                except BaseException:
                    Path(tmp_name).unlink(missing_ok=True)
                    raise
            except OSError as exc:
                raise StorageError(f"Cannot write chunk store '{self.path}': {exc}") from exc
            logger.debug("Persisted %d chunks to %s", len(self._chunks), self.path)


def _check_dimensions(chunks: list[Chunk], expected: int | None) -> None:
    """Raise StorageError unless every chunk has the same embedding length."""
    for chunk in chunks:
        if expected is None:
            expected = chunk.dimensions
        elif chunk.dimensions != expected:
            raise StorageError(
                f"Embedding dimension mismatch for chunk '{chunk.id}': "
                f"expected {expected}, got {chunk.dimensions}."
            )
