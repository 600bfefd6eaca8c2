"""Document retriever over a Pinecone index.

Steps per question:
1. Embed the question.
2. Run a k-nearest-neighbour query (over-fetching when reranking is on).
3. Deduplicate hits by exact content, keeping the best-scoring copy.
4. Optionally rerank with a hosted cross-encoder; any reranker problem falls
   back to the similarity order.
5. Optionally drop hits under a minimum score.
"""

from __future__ import annotations

import time
from typing import Any

from ragdesk.config import settings
from ragdesk.rag.errors import RetrievalError
from ragdesk.rag.schemas import Outcome, RetrievalResult, RetrievedDocument
from ragdesk.utils.logging import get_logger
from ragdesk.utils.tracing import traceable

logger = get_logger(__name__)

RERANK_POOL_FLOOR = 50
RERANK_POOL_MULTIPLIER = 10


def _as_matches(query_result: Any) -> list[Any]:
    if hasattr(query_result, "matches"):
        return list(query_result.matches)
    if isinstance(query_result, dict):
        return list(query_result.get("matches", []))
    return []


def _as_metadata(match: Any) -> dict[str, Any]:
    if hasattr(match, "metadata") and isinstance(match.metadata, dict):
        return match.metadata
    if isinstance(match, dict) and isinstance(match.get("metadata"), dict):
        return match["metadata"]
    return {}


def _as_score(match: Any) -> float:
    if hasattr(match, "score") and match.score is not None:
        return float(match.score)
    if isinstance(match, dict):
        return float(match.get("score") or 0.0)
    return 0.0


def _as_id(match: Any) -> str:
    if hasattr(match, "id"):
        return str(match.id)
    if isinstance(match, dict):
        return str(match.get("id", ""))
    return ""


def match_to_document(match: Any) -> RetrievedDocument:
    metadata = _as_metadata(match)
    return RetrievedDocument(
        id=_as_id(match),
        content=str(metadata.get("content", "")),
        filename=str(metadata.get("filename", "unknown")),
        category=str(metadata.get("category", "general")),
        created_utc=str(metadata.get("created_utc", "")),
        score=_as_score(match),
    )


def candidate_pool_size(top_k: int, use_reranker: bool) -> int:
    """Number of neighbours to fetch before dedup/rerank."""

    if use_reranker:
        return max(RERANK_POOL_FLOOR, top_k * RERANK_POOL_MULTIPLIER)
    return top_k


def deduplicate_by_content(documents: list[RetrievedDocument]) -> list[RetrievedDocument]:
    """Collapse identical content to its highest-scoring copy, best first."""

    best: dict[str, RetrievedDocument] = {}
    for doc in documents:
        existing = best.get(doc.content)
        if existing is None or doc.score > existing.score:
            best[doc.content] = doc
    return sorted(best.values(), key=lambda doc: doc.score, reverse=True)


class DocumentRetriever:
    """Pinecone-backed retriever with optional hosted reranking."""

    def __init__(
        self,
        *,
        embedder: Any,
        index: Any,
        namespace: str = settings.pinecone_namespace,
        reranker: Any | None = None,
        use_reranker: bool = settings.use_reranker,
    ) -> None:
        self.embedder = embedder
        self.index = index
        self.namespace = namespace
        self.reranker = reranker
        self.use_reranker = use_reranker

    def _search(self, query_vector: list[float], *, limit: int, category: str | None) -> list[RetrievedDocument]:
        raw = self.index.query(
            vector=query_vector,
            top_k=limit,
            include_metadata=True,
            namespace=self.namespace,
            filter={"category": {"$eq": category}} if category else None,
        )
        return [match_to_document(match) for match in _as_matches(raw)]

    def _rerank(self, question: str, documents: list[RetrievedDocument], top_k: int) -> Outcome[list[RetrievedDocument]]:
        """Reorder by reranker score, or fall back to the similarity order."""

        fallback = documents[:top_k]
        try:
            pairs = self.reranker.rerank(question, [doc.content for doc in documents], top_n=top_k)
            if not pairs:
                raise RuntimeError("Reranker returned no results")

            reranked: list[RetrievedDocument] = []
            for index, score in sorted(pairs, key=lambda pair: pair[1], reverse=True)[:top_k]:
                if not 0 <= index < len(documents):
                    raise RuntimeError(f"Invalid reranker result index: {index}")
                reranked.append(documents[index].model_copy(update={"score": score}))
        except Exception as exc:
            logger.warning(
                "Reranking failed; falling back to similarity order",
                extra={"context": {"error": str(exc), "candidates": len(documents), "top_k": top_k}},
            )
            return Outcome(value=fallback, degraded=True, reason=str(exc))

        return Outcome(value=reranked)

    @traceable(name="retrieve_documents", run_type="retriever")
    def retrieve(
        self,
        question: str,
        top_k: int = settings.default_top_k,
        *,
        min_score: float | None = None,
        use_reranker: bool | None = None,
        category: str | None = None,
    ) -> RetrievalResult:
        """Retrieve at most `top_k` unique documents for a question.

        Raises
        ------
        RetrievalError
            If embedding or the vector query fails.
        """

        if top_k < 1:
            raise ValueError("top_k must be >= 1")

        started = time.perf_counter()
        rerank_enabled = (self.use_reranker if use_reranker is None else use_reranker) and self.reranker is not None
        limit = candidate_pool_size(top_k, rerank_enabled)

        try:
            query_vector = self.embedder.embed_query(question)
        except Exception as exc:
            raise RetrievalError(f"Failed to generate embedding: {exc}") from exc

        try:
            hits = self._search(query_vector, limit=limit, category=category)
        except Exception as exc:
            raise RetrievalError(f"Vector search failed: {exc}") from exc

        unique_hits = deduplicate_by_content(hits)
        retrieval_ms = (time.perf_counter() - started) * 1000

        rerank_ms: float | None = None
        rerank_degraded = False
        if rerank_enabled and unique_hits:
            rerank_started = time.perf_counter()
            outcome = self._rerank(question, unique_hits, top_k)
            rerank_ms = (time.perf_counter() - rerank_started) * 1000
            documents = outcome.value
            rerank_degraded = outcome.degraded
        else:
            documents = unique_hits[:top_k]

        if min_score is not None:
            documents = [doc for doc in documents if doc.score >= min_score]

        logger.info(
            "Retriever returned documents",
            extra={
                "context": {
                    "raw_hits": len(hits),
                    "unique_hits": len(unique_hits),
                    "count": len(documents),
                    "reranked": rerank_enabled and bool(unique_hits),
                    "rerank_degraded": rerank_degraded,
                    "namespace": self.namespace,
                    "category": category,
                }
            },
        )

        return RetrievalResult(
            documents=documents,
            retrieval_ms=retrieval_ms,
            rerank_ms=rerank_ms,
            reranked=rerank_enabled and bool(unique_hits) and not rerank_degraded,
            rerank_degraded=rerank_degraded,
        )
