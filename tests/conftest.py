from __future__ import annotations

import hashlib
import math
import re
import uuid
from types import SimpleNamespace

import chromadb
import pytest
from openai.types.chat import ChatCompletionMessage

from structured_agent.vectorstores.store import VectorStore

DIM = 64


class FakeEmbeddings:
    """Deterministic bag-of-words embeddings; identical texts get identical vectors."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    def _vector(self, text: str) -> list[float]:
        vec = [0.0] * DIM
        vec[0] = 0.01
        for token in re.findall(r"\w+", text.lower()):
            h = int(hashlib.md5(token.encode()).hexdigest(), 16)
            vec[1 + h % (DIM - 1)] += 1.0
        norm = math.sqrt(sum(v * v for v in vec))
        return [v / norm for v in vec]

    def embed(self, texts: list[str]) -> list[list[float] | None]:
        self.calls.append(list(texts))
        return [self._vector(t) for t in texts]


@pytest.fixture
def embeddings() -> FakeEmbeddings:
    return FakeEmbeddings()


@pytest.fixture
def chroma_client():
    return chromadb.EphemeralClient()


@pytest.fixture
def store(embeddings, chroma_client):
    vector_store = VectorStore(embeddings, index_name=f"test-{uuid.uuid4().hex}", client=chroma_client)
    yield vector_store
    vector_store.delete_index()


def make_completion(
    content: str | None = None,
    name: str | None = None,
    arguments: str = "{}",
    call_id: str | None = "call_1",
):
    """Build a chat completion whose first choice carries the given message."""
    data: dict = {"role": "assistant", "content": content}
    if name is not None:
        if call_id is None:
            data["function_call"] = {"name": name, "arguments": arguments}
        else:
            data["tool_calls"] = [
                {"id": call_id, "type": "function", "function": {"name": name, "arguments": arguments}}
            ]
    message = ChatCompletionMessage.model_validate(data)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def completion():
    return make_completion


def make_rate_limit_error():
    import httpx
    from openai import RateLimitError

    request = httpx.Request("POST", "https://api.test/v1/chat/completions")
    return RateLimitError("rate limited", response=httpx.Response(429, request=request), body=None)


@pytest.fixture
def rate_limit_error():
    return make_rate_limit_error
