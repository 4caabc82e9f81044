"""Dense retriever: cosine similarity over a linear scan of the chunk store.

Every query scores every stored chunk (O(N·D)); there is no index. Ranking is
a stable sort on the score, so equal scores keep store order.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from ragdesk.store.models import Chunk


@dataclass
class ScoredChunk:
    """A retrieved chunk together with its cosine similarity to the query."""

    chunk: Chunk
    score: float


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the cosine similarity of *a* and *b*, in [-1, 1].

    An all-zero vector has no direction; its similarity to anything is 0.0.

    Raises:
        ValueError: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise ValueError(f"Vector length mismatch: {len(a)} != {len(b)}")
    dot = math.fsum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(math.fsum(x * x for x in a))
    norm_b = math.sqrt(math.fsum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return max(-1.0, min(1.0, dot / (norm_a * norm_b)))


def rank(query_vector: Sequence[float], chunks: Sequence[Chunk], k: int) -> list[ScoredChunk]:
    """Return the *k* chunks most similar to *query_vector*, best-first.

    Returns ``min(k, len(chunks))`` results.

    Raises:
        ValueError: If *k* is negative or a chunk's dimensionality differs
            from the query's.
    """
    if k < 0:
        raise ValueError(f"k must be >= 0, got {k}")
    scored = [ScoredChunk(chunk=c, score=cosine_similarity(query_vector, c.embedding)) for c in chunks]
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored[:k]
