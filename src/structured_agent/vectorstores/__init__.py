from structured_agent.vectorstores.store import Document, Retriever, VectorStore

__all__ = ["Document", "Retriever", "VectorStore"]
