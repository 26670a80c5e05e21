"""Split long texts into overlapping chunks before indexing."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from llama_index.core.node_parser import SentenceSplitter

from structured_agent.vectorstores.config import VectorStoreConfig
from structured_agent.vectorstores.store import Document

logger = logging.getLogger(__name__)

CHUNK_KEY = "page_chunk"


@dataclass
class TextSplitter:
    config: VectorStoreConfig = field(default_factory=VectorStoreConfig)

    def _splitter(self) -> SentenceSplitter:
        return SentenceSplitter(
            chunk_size=self.config.chunk_size,
            chunk_overlap=self.config.chunk_overlap,
        )

    def split_text(self, text: str) -> list[str]:
        if not text.strip():
            return []
        return [chunk for chunk in self._splitter().split_text(text) if chunk.strip()]

    def split_documents(self, documents: list[Document]) -> list[Document]:
        """Split each document, numbering chunks across the whole input.

        Every chunk keeps its source metadata plus ``page_chunk``, the number
        the model cites in a final response's sources.
        """
        out: list[Document] = []
        for doc in documents:
            for chunk in self.split_text(doc.page_content):
                out.append(Document(page_content=chunk, metadata={**doc.metadata, CHUNK_KEY: len(out)}))
        logger.info("Split %d documents into %d chunks", len(documents), len(out))
        return out


def load_text_files(paths: list[Path]) -> list[Document]:
    documents: list[Document] = []
    for path in paths:
        text = path.read_text(encoding="utf-8", errors="replace")
        documents.append(Document(page_content=text, metadata={"source": str(path)}))
    return documents
