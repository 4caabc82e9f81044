"""ragdesk chunk store."""

from ragdesk.store.chunk_store import ChunkStore
from ragdesk.store.models import Chunk, make_chunk_id

__all__ = [
    "Chunk",
    "ChunkStore",
    "make_chunk_id",
]
