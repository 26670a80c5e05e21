"""Vector store over a ChromaDB collection."""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, Sequence

import chromadb

from structured_agent.vectorstores.config import VectorStoreConfig

logger = logging.getLogger(__name__)

# Chroma only accepts flat, non-empty metadata, so document metadata is kept
# as a JSON string under a single key.
METADATA_KEY = "document_metadata"


class Embeddings(Protocol):
    def embed(self, texts: list[str]) -> list[list[float] | None]: ...


@dataclass
class Document:
    page_content: str
    metadata: dict[str, Any] = field(default_factory=dict)


def _encode_metadata(metadata: dict[str, Any] | None) -> dict[str, str]:
    return {METADATA_KEY: json.dumps(metadata or {}, ensure_ascii=False, sort_keys=True)}


def _decode_metadata(stored: dict[str, Any] | None) -> dict[str, Any]:
    if not stored or METADATA_KEY not in stored:
        return {}
    return json.loads(stored[METADATA_KEY])


class VectorStore:
    """Documents in a named index, searchable by embedding similarity."""

    def __init__(
        self,
        embeddings: Embeddings,
        index_name: str = "default",
        client: Any | None = None,
        persist_dir: Path | None = None,
        config: VectorStoreConfig | None = None,
    ) -> None:
        self.embeddings = embeddings
        self.index_name = index_name
        self.config = config or VectorStoreConfig()
        if client is None:
            if persist_dir is not None:
                client = chromadb.PersistentClient(path=str(Path(persist_dir).expanduser()))
            else:
                client = chromadb.EphemeralClient()
        self._client = client
        self._collection = self._get_collection()

    def _get_collection(self):
        return self._client.get_or_create_collection(
            name=self.index_name,
            embedding_function=None,
            metadata={"hnsw:space": self.config.distance},
        )

    def get_client(self):
        return self._client

    @classmethod
    def from_texts(
        cls,
        texts: Sequence[str],
        metadatas: Sequence[dict[str, Any]] | None,
        embeddings: Embeddings,
        ids: Sequence[str] | None = None,
        **kwargs: Any,
    ) -> VectorStore:
        if metadatas is not None and len(texts) != len(metadatas):
            raise ValueError(
                f"Number of texts ({len(texts)}) does not equal number of metadatas ({len(metadatas)})"
            )
        store = cls(embeddings, **kwargs)
        store.add_texts(texts, metadatas, ids=ids)
        return store

    @classmethod
    def from_documents(
        cls,
        documents: Sequence[Document],
        embeddings: Embeddings,
        ids: Sequence[str] | None = None,
        **kwargs: Any,
    ) -> VectorStore:
        store = cls(embeddings, **kwargs)
        store.add_documents(documents, ids=ids)
        return store

    def add_texts(
        self,
        texts: Sequence[str],
        metadatas: Sequence[dict[str, Any]] | None = None,
        ids: Sequence[str] | None = None,
    ) -> list[str]:
        if metadatas is None:
            metadatas = [{} for _ in texts]
        if len(texts) != len(metadatas):
            raise ValueError(
                f"Number of texts ({len(texts)}) does not equal number of metadatas ({len(metadatas)})"
            )
        documents = [Document(page_content=t, metadata=dict(m)) for t, m in zip(texts, metadatas)]
        return self.add_documents(documents, ids=ids)

    def add_documents(self, documents: Sequence[Document], ids: Sequence[str] | None = None) -> list[str]:
        """Embed and upsert documents, returning the ids they were stored under.

        Without ``ids`` every document gets a fresh uuid4. Documents whose
        embedding failed are skipped and their ids left out of the result.
        """
        if not documents:
            return []
        if ids is None:
            ids = [str(uuid.uuid4()) for _ in documents]
        elif len(ids) != len(documents):
            raise ValueError(
                f"Number of ids ({len(ids)}) does not equal number of documents ({len(documents)})"
            )

        vectors = self.embeddings.embed([d.page_content for d in documents])
        ok = [(i, d, v) for i, d, v in zip(ids, documents, vectors) if v is not None]
        skipped = len(documents) - len(ok)
        if skipped:
            logger.warning("%s: skipping %d documents with failed embeddings", self.index_name, skipped)
        if not ok:
            logger.error("%s: all embeddings failed, nothing to upsert", self.index_name)
            return []

        batch = self.config.upsert_batch_size
        for start in range(0, len(ok), batch):
            chunk = ok[start : start + batch]
            self._collection.upsert(
                ids=[i for i, _, _ in chunk],
                documents=[d.page_content for _, d, _ in chunk],
                metadatas=[_encode_metadata(d.metadata) for _, d, _ in chunk],
                embeddings=[v for _, _, v in chunk],
            )
        logger.info("%s: upserted %d documents, total count=%d",
                    self.index_name, len(ok), self._collection.count())
        return [i for i, _, _ in ok]

    def similarity_search_with_score(self, query: str, k: int = 4) -> list[tuple[Document, float]]:
        """Return up to ``k`` documents with their cosine similarity, best first."""
        n_results = min(k, self._collection.count())
        if n_results <= 0:
            return []
        [vector] = self.embeddings.embed([query])
        if vector is None:
            raise ValueError("Could not embed query")

        results = self._collection.query(
            query_embeddings=[vector],
            n_results=n_results,
            include=["documents", "metadatas", "distances"],
        )
        return self._parse_results(results)

    def similarity_search(self, query: str, k: int = 4) -> list[Document]:
        return [doc for doc, _ in self.similarity_search_with_score(query, k)]

    def delete(self, ids: Sequence[str]) -> None:
        if not ids:
            return
        logger.info("%s: deleting %d documents", self.index_name, len(ids))
        self._collection.delete(ids=list(ids))

    def delete_index(self) -> None:
        logger.info("Deleting index %s", self.index_name)
        self._client.delete_collection(self.index_name)

    def count(self) -> int:
        return self._collection.count()

    def as_retriever(self, k: int | None = None) -> Retriever:
        return Retriever(store=self, k=k or self.config.top_k)

    @staticmethod
    def _parse_results(results: dict) -> list[tuple[Document, float]]:
        out: list[tuple[Document, float]] = []
        if not results or not results.get("ids") or not results["ids"][0]:
            return out
        ids = results["ids"][0]
        docs = results["documents"][0] if results.get("documents") else [""] * len(ids)
        metas = results["metadatas"][0] if results.get("metadatas") else [None] * len(ids)
        dists = results["distances"][0] if results.get("distances") else [0.0] * len(ids)
        for doc, meta, dist in zip(docs, metas, dists):
            document = Document(page_content=doc or "", metadata=_decode_metadata(meta))
            out.append((document, round(1.0 - dist, 4)))
        return out


@dataclass
class Retriever:
    store: VectorStore
    k: int = 4

    def get_relevant_documents(self, query: str) -> list[Document]:
        return self.store.similarity_search(query, self.k)
