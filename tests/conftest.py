"""Shared in-memory stand-ins for the chat model, vector index and reranker."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from ragdesk.rag.schemas import RetrievedDocument


class FakeChatModel:
    """Replays scripted replies; an `Exception` entry is raised instead of returned."""

    def __init__(self, replies: list[Any], *, tokens: int | None = None) -> None:
        self.replies = list(replies)
        self.tokens = tokens
        self.calls: list[dict[str, Any]] = []

    def invoke(self, messages: list[dict[str, str]], **kwargs: Any) -> Any:
        self.calls.append({"messages": messages, **kwargs})
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        usage = {"total_tokens": self.tokens} if self.tokens is not None else None
        return SimpleNamespace(content=reply, usage_metadata=usage)


class FakeIndex:
    """Pinecone-like index returning dict matches ordered by score."""

    def __init__(self, matches: list[dict[str, Any]] | None = None) -> None:
        self.matches = matches or []
        self.queries: list[dict[str, Any]] = []
        self.upserts: list[dict[str, Any]] = []

    def query(self, **kwargs: Any) -> dict[str, Any]:
        self.queries.append(kwargs)
        ordered = sorted(self.matches, key=lambda match: match["score"], reverse=True)
        return {"matches": ordered[: kwargs["top_k"]]}

    def upsert(self, *, vectors: list[Any], namespace: str) -> None:
        self.upserts.append({"vectors": vectors, "namespace": namespace})


class FakeEmbedder:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail

    def embed_query(self, text: str) -> list[float]:
        if self.fail:
            raise RuntimeError("embedding service unavailable")
        return [0.1, 0.2, 0.3]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [[0.1, 0.2, 0.3] for _ in texts]


class FakeReranker:
    """Scores candidates by position reversed, or raises when configured to."""

    def __init__(self, *, error: Exception | None = None, pairs: list[tuple[int, float]] | None = None) -> None:
        self.error = error
        self.pairs = pairs
        self.calls: list[dict[str, Any]] = []

    def rerank(self, query: str, texts: list[str], *, top_n: int) -> list[tuple[int, float]]:
        self.calls.append({"query": query, "texts": texts, "top_n": top_n})
        if self.error is not None:
            raise self.error
        if self.pairs is not None:
            return self.pairs
        ranked = [(idx, float(idx + 1)) for idx in range(len(texts))]
        return sorted(ranked, key=lambda pair: pair[1], reverse=True)[:top_n]


def make_match(idx: int, score: float, *, content: str | None = None, category: str = "hr") -> dict[str, Any]:
    return {
        "id": f"chunk-{idx}",
        "score": score,
        "metadata": {
            "content": content if content is not None else f"Policy text number {idx}.",
            "filename": f"policy_{idx}.txt",
            "category": category,
            "created_utc": "2026-01-01T00:00:00+00:00",
        },
    }


def make_document(idx: int, *, score: float = 0.9, content: str | None = None) -> RetrievedDocument:
    return RetrievedDocument(
        id=f"chunk-{idx}",
        content=content if content is not None else f"Employees accrue leave at rate {idx}.",
        filename=f"handbook_{idx}.txt",
        category="hr",
        created_utc="2026-01-01T00:00:00+00:00",
        score=score,
    )


@pytest.fixture
def documents() -> list[RetrievedDocument]:
    return [make_document(idx, score=1.0 - idx * 0.05) for idx in range(3)]
