"""Fixed-window text chunker with character overlap."""

from __future__ import annotations

from ragdesk.errors import ValidationError

DEFAULT_CHUNK_SIZE = 1500
DEFAULT_OVERLAP = 300


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_OVERLAP,
) -> list[str]:
    """Split *text* into windows of *chunk_size* characters.

    Windows start at ``0, step, 2*step, ...`` with ``step = chunk_size - overlap``
    and stop once the start offset reaches ``len(text)``. The last window may
    be shorter; nothing is stripped or padded. Splits may fall inside a
    grapheme cluster.

    Raises:
        ValidationError: If ``chunk_size < 1`` or overlap is outside
            ``[0, chunk_size)``.
    """
    if chunk_size < 1:
        raise ValidationError(f"chunk_size must be >= 1, got {chunk_size}")
    if not 0 <= overlap < chunk_size:
        raise ValidationError(
            f"overlap must be in [0, chunk_size), got {overlap} (chunk_size={chunk_size})"
        )

    step = chunk_size - overlap
    return [text[pos : pos + chunk_size] for pos in range(0, len(text), step)]
