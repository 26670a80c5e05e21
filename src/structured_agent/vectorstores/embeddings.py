"""OpenAI-compatible embedding client used by the vector store."""

from __future__ import annotations

import logging
from typing import Any, Iterator

from openai import APIConnectionError, APITimeoutError, InternalServerError, OpenAI, RateLimitError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from structured_agent.config import settings
from structured_agent.vectorstores.config import VectorStoreConfig

logger = logging.getLogger(__name__)

_TRANSIENT_ERRORS = (APIConnectionError, APITimeoutError, InternalServerError, RateLimitError)

# The embeddings endpoint rejects empty inputs
BLANK_PLACEHOLDER = " "


class EmbeddingClient:
    """Embeds texts in batches bounded by both item count and total characters.

    ``embed`` keeps its output aligned with its input: a batch that fails
    yields ``None`` for each of its texts, which ``VectorStore`` skips.
    """

    def __init__(
        self,
        model: str,
        batch_size: int = 50,
        batch_max_chars: int = 80_000,
        client: Any | None = None,
    ) -> None:
        self.model = model
        self.batch_size = batch_size
        self.batch_max_chars = batch_max_chars
        self._client = client or OpenAI(api_key=settings.llm_api_key, base_url=settings.llm_base_url)

    @classmethod
    def from_config(cls, config: VectorStoreConfig, client: Any | None = None) -> EmbeddingClient:
        return cls(
            config.embedding_model,
            batch_size=config.embedding_batch_size,
            batch_max_chars=config.embedding_batch_max_chars,
            client=client,
        )

    def _batches(self, texts: list[str]) -> Iterator[list[str]]:
        current: list[str] = []
        chars = 0
        for text in texts:
            full = len(current) >= self.batch_size or chars + len(text) > self.batch_max_chars
            if current and full:
                yield current
                current, chars = [], 0
            current.append(text)
            chars += len(text)
        if current:
            yield current

    @retry(
        stop=stop_after_attempt(5),
        wait=wait_exponential(min=2, max=60),
        retry=retry_if_exception_type(_TRANSIENT_ERRORS),
        reraise=True,
    )
    def _embed_batch(self, texts: list[str]) -> list[list[float]]:
        inputs = [t if t.strip() else BLANK_PLACEHOLDER for t in texts]
        response = self._client.embeddings.create(model=self.model, input=inputs)
        if len(response.data) != len(inputs):
            raise ValueError(f"Expected {len(inputs)} embeddings, got {len(response.data)}")
        return [item.embedding for item in sorted(response.data, key=lambda x: x.index)]

    def embed(self, texts: list[str]) -> list[list[float] | None]:
        if not texts:
            return []
        vectors: list[list[float] | None] = []
        failed = 0
        for batch in self._batches(texts):
            try:
                vectors.extend(self._embed_batch(batch))
            except Exception:
                logger.exception("Embedding batch of %d texts failed (model=%s)", len(batch), self.model)
                vectors.extend([None] * len(batch))
                failed += len(batch)
        logger.info("Embedded %d/%d texts (model=%s)", len(texts) - failed, len(texts), self.model)
        return vectors
