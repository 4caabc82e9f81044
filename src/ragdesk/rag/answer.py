"""Question answering over the chunk store.

Embed the question, rank every stored chunk, hand the top-K texts to the
completion model as context, and return the answer with the IDs of the chunks
it was given.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ragdesk.errors import CompletionError, ValidationError
from ragdesk.rag import llm_client
from ragdesk.rag.retriever import ScoredChunk, rank

if TYPE_CHECKING:
    from ragdesk.ingest.embedder import EmbeddingClient
    from ragdesk.store.chunk_store import ChunkStore

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are a highly skilled and professional data assistant.
- Analyze and compare datasets from Excel, CSV, PDF, Word, and websites.
- Provide insights, highlight trends, detect anomalies accurately.
- Only use uploaded data; do not invent information.
- Answer questions concisely in readable paragraphs or tables.
- Reference the source of each insight when possible.
- If data does not contain the answer, politely state so."""

_USER_PROMPT = "Answer the question using this context:\n\n{context}\n\nQ: {question}"


@dataclass
class AnswerConfig:
    """Completion settings for answer generation."""

    model: str = "openai/gpt-4o-mini"
    top_k: int = 5
    max_tokens: int = 1024
    timeout: float = 60.0
    num_retries: int = 3


@dataclass
class Answer:
    """Generated answer plus the chunks it was grounded on.

    Attributes:
        answer: Model output text.
        sources: IDs of the context chunks, best-first.
        chunks: The context chunks with their similarity scores.
    """

    answer: str
    sources: list[str] = field(default_factory=list)
    chunks: list[ScoredChunk] = field(default_factory=list)


def build_messages(question: str, context_chunks: list[ScoredChunk]) -> list[dict]:
    context = "\n\n".join(sc.chunk.text for sc in context_chunks)
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": _USER_PROMPT.format(context=context, question=question)},
    ]


def answer_question(
    question: str,
    store: ChunkStore,
    embedder: EmbeddingClient,
    config: AnswerConfig | None = None,
) -> Answer:
    """Answer *question* from the indexed chunks.

    Raises:
        ValidationError: If the question is empty or nothing is indexed.
        EmbeddingError: If the question cannot be embedded.
        CompletionError: If the completion provider fails.
    """
    config = config or AnswerConfig()
    if not question or not question.strip():
        raise ValidationError("No question provided.")
    if len(store) == 0:
        raise ValidationError("No data indexed.")

    query_vector = embedder.embed(question)
    if len(query_vector) != store.dimensions:
        raise ValidationError(
            f"Query embedding has {len(query_vector)} dimensions but the store holds "
            f"{store.dimensions}-dimensional chunks. Use the embedding model the store "
            "was built with."
        )
    top = rank(query_vector, store.chunks, config.top_k)
    logger.debug("Top %d chunks: %s", len(top), [(s.chunk.id, round(s.score, 4)) for s in top])

    try:
        text = llm_client.complete(
            config.model,
            build_messages(question, top),
            max_tokens=config.max_tokens,
            num_retries=config.num_retries,
            timeout=config.timeout,
        )
    except Exception as exc:
        raise CompletionError(f"Completion request to '{config.model}' failed: {exc}") from exc

    return Answer(answer=text, sources=[s.chunk.id for s in top], chunks=top)
