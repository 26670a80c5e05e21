"""Vector store configuration settings."""

from __future__ import annotations

from dataclasses import dataclass, field

from structured_agent.config import settings


@dataclass
class VectorStoreConfig:
    embedding_model: str = field(default_factory=lambda: settings.embedding_model)
    chunk_size: int = field(default_factory=lambda: settings.chunk_size)
    chunk_overlap: int = field(default_factory=lambda: settings.chunk_overlap)
    top_k: int = field(default_factory=lambda: settings.retriever_top_k)
    distance: str = "cosine"
    upsert_batch_size: int = 500
    embedding_batch_size: int = 50
    embedding_batch_max_chars: int = 80_000  # stay under provider limits
