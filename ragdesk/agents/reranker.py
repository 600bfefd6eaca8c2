"""Hosted reranking through Pinecone Inference.

A reranker scores (query, document) pairs with a cross-encoder, which is
slower but more precise than first-pass vector similarity. The retriever
over-fetches candidates and lets this pass pick the final order.
"""

from __future__ import annotations

from typing import Any

from ragdesk.utils.logging import get_logger

logger = get_logger(__name__)


def _as_ranked_items(rerank_result: Any) -> list[Any]:
    if hasattr(rerank_result, "data"):
        return list(rerank_result.data)
    if isinstance(rerank_result, dict):
        return list(rerank_result.get("data", []))
    return []


def _field(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


class PineconeReranker:
    """Thin adapter over `Pinecone.inference.rerank`."""

    def __init__(self, client: Any, *, model: str) -> None:
        self.client = client
        self.model = model

    def rerank(self, query: str, texts: list[str], *, top_n: int) -> list[tuple[int, float]]:
        """Return `(input_index, score)` pairs in the order the service sent them."""

        if not texts:
            return []

        result = self.client.inference.rerank(
            model=self.model,
            query=query,
            documents=[{"id": str(idx), "text": text} for idx, text in enumerate(texts)],
            top_n=min(top_n, len(texts)),
            return_documents=False,
            parameters={"truncate": "END"},
        )

        pairs: list[tuple[int, float]] = []
        for item in _as_ranked_items(result):
            index = _field(item, "index")
            score = _field(item, "score")
            if index is None or score is None:
                raise RuntimeError(f"Malformed rerank item: {item!r}")
            pairs.append((int(index), float(score)))

        logger.debug(
            "Rerank call completed",
            extra={"context": {"model": self.model, "inputs": len(texts), "returned": len(pairs)}},
        )
        return pairs
