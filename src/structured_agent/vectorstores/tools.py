"""Expose a retriever as a tool the agent can call."""

from __future__ import annotations

import json

from structured_agent.tools import Tool
from structured_agent.vectorstores.splitter import CHUNK_KEY
from structured_agent.vectorstores.store import Document, Retriever

MAX_CHUNK_CHARS = 4000


def format_documents(documents: list[Document]) -> str:
    """Render retrieved chunks as JSON with the chunk number to cite."""
    payload = []
    for idx, doc in enumerate(documents):
        content = doc.page_content
        if len(content) > MAX_CHUNK_CHARS:
            content = content[:MAX_CHUNK_CHARS] + "... (truncated)"
        payload.append({"page_chunk": doc.metadata.get(CHUNK_KEY, idx), "content": content})
    return json.dumps(payload, ensure_ascii=False)


def create_retriever_tool(
    retriever: Retriever,
    name: str = "search_documents",
    description: str = "Query a retriever to get information about the indexed documents.",
) -> Tool:
    def search(args: dict) -> str:
        documents = retriever.get_relevant_documents(args["query"])
        if not documents:
            return "No documents found."
        return format_documents(documents)

    return Tool(
        name=name,
        description=description,
        parameters={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Natural language query to look up in the documents.",
                },
            },
            "required": ["query"],
        },
        execute=search,
    )
