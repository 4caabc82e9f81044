"""Embedding client — batched LiteLLM embeddings with open-loop rate pacing.

Texts are split into sub-batches of ``batch_size``. Each sub-batch fans out
one embedding request per text on a thread pool and waits for all of them;
sub-batches run one after another with a fixed ``batch_pause`` in between to
stay under the provider's requests-per-minute ceiling. The pause is
preventive: throttling responses are handled only by litellm's retries.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from ragdesk.errors import EmbeddingError
from ragdesk.rag import llm_client

logger = logging.getLogger(__name__)


@dataclass
class EmbeddingConfig:
    """Configuration for embedding generation."""

    model: str = "openai/text-embedding-3-small"
    batch_size: int = 50
    batch_pause: float = 0.05
    timeout: float = 30.0
    num_retries: int = 3


class EmbeddingClient:
    """Embed texts through LiteLLM, batch by batch.

    Args:
        config: Model, batching, and retry settings.
        sleep:  Pause function between sub-batches (injectable for tests).
    """

    def __init__(
        self,
        config: EmbeddingConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config or EmbeddingConfig()
        if self.config.batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._sleep = sleep

    def embed(self, text: str) -> list[float]:
        """Embed a single text (query path).

        Raises:
            EmbeddingError: If the provider call fails after retries.
        """
        try:
            return llm_client.embed(
                self.config.model,
                text,
                num_retries=self.config.num_retries,
                timeout=self.config.timeout,
            )
        except Exception as exc:
            raise EmbeddingError(
                f"Embedding request to '{self.config.model}' failed: {exc}"
            ) from exc

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts*, preserving order. All-or-nothing.

        Raises:
            EmbeddingError: If any request in any sub-batch fails.
        """
        if not texts:
            return []

        size = self.config.batch_size
        batches = [texts[i : i + size] for i in range(0, len(texts), size)]
        vectors: list[list[float]] = []

        with ThreadPoolExecutor(max_workers=min(size, len(texts))) as pool:
            for n, batch in enumerate(batches):
                if n:
                    self._sleep(self.config.batch_pause)
                logger.debug(
                    "Embedding sub-batch %d/%d (%d texts)", n + 1, len(batches), len(batch)
                )
                # map() re-raises the first failure when results are consumed
                vectors.extend(pool.map(self.embed, batch))

        return vectors
