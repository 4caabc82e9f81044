"""Domain models for the chunk store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Chunk:
    id: str
    text: str
    embedding: list[float] = field(default_factory=list)
    source: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "embedding": list(self.embedding),
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Chunk:
        """Build a Chunk from one snapshot entry.

        Raises:
            KeyError: If ``id``, ``text`` or ``embedding`` is missing.
            TypeError / ValueError: If the embedding is not a list of numbers.
        """
        embedding = data["embedding"]
        if not isinstance(embedding, list):
            raise TypeError(f"embedding must be a list, got {type(embedding).__name__}")
        return cls(
            id=str(data["id"]),
            text=str(data["text"]),
            embedding=[float(x) for x in embedding],
            source=str(data.get("source", "")),
        )

    @property
    def dimensions(self) -> int:
        return len(self.embedding)


def make_chunk_id(source: str, timestamp_ms: int, index: int) -> str:
    """Return ``{source}_{timestamp_ms}_{index}``.

    Unique only as long as two ingestions of the same *source* do not start
    within the same millisecond.
    """
    return f"{source}_{timestamp_ms}_{index}"
