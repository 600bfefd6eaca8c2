"""LangGraph node implementations for the question-answering pipeline.

Nodes:
- `classify`: category/complexity labels (never fails, may degrade)
- `retrieve`: vector search plus optional reranking
- `not_found`: short-circuit when retrieval produced nothing
- `check_summarization`: decide whether the document set must be condensed
- `summarize`: direct or map-reduce summarization
- `answer`: grounded answer with citations
"""

from __future__ import annotations

import time
from collections.abc import Callable

from ragdesk.agents.summarizer import needs_summarization
from ragdesk.graph.state import GraphState
from ragdesk.rag.errors import PipelineError
from ragdesk.rag.prompts import NOT_FOUND_ANSWER
from ragdesk.rag.schemas import QuestionComplexity
from ragdesk.services import PipelineServices
from ragdesk.utils.logging import get_logger

logger = get_logger(__name__)


def _with_timing(state: GraphState, key: str, elapsed_ms: float) -> dict[str, float]:
    return {**state.get("timings", {}), key: elapsed_ms}


def route_after_retrieve(state: GraphState) -> str:
    return "check_summarization" if state.get("documents") else "not_found"


def route_after_check(state: GraphState) -> str:
    return "summarize" if state.get("needs_summarization") else "answer"


def _stage(name: str) -> Callable[[Callable[..., GraphState]], Callable[..., GraphState]]:
    """Wrap a node so any failure surfaces as `PipelineError` naming the stage."""

    def decorator(func: Callable[..., GraphState]) -> Callable[..., GraphState]:
        def wrapper(self: "PipelineNodes", state: GraphState) -> GraphState:
            try:
                return func(self, state)
            except PipelineError:
                raise
            except Exception as exc:
                logger.error(
                    "Pipeline stage failed",
                    extra={"context": {"stage": name, "error": str(exc)}},
                )
                raise PipelineError(f"{name} failed: {exc}", stage=name) from exc

        wrapper.__name__ = func.__name__
        wrapper.__doc__ = func.__doc__
        return wrapper

    return decorator


class PipelineNodes:
    """Graph nodes bound to one set of injected stage services."""

    def __init__(self, services: PipelineServices) -> None:
        self.services = services

    @_stage("classify")
    def classify(self, state: GraphState) -> GraphState:
        started = time.perf_counter()
        outcome = self.services.classifier.classify(state["question"])
        elapsed_ms = (time.perf_counter() - started) * 1000

        logger.info(
            "Classify node completed",
            extra={
                "context": {
                    "category": outcome.value.category.value,
                    "complexity": outcome.value.complexity.value,
                    "degraded": outcome.degraded,
                    "reason": outcome.reason,
                }
            },
        )
        return {
            "category": outcome.value.category,
            "complexity": outcome.value.complexity,
            "classification_degraded": outcome.degraded,
            "timings": _with_timing(state, "classification_ms", elapsed_ms),
        }

    @_stage("retrieve")
    def retrieve(self, state: GraphState) -> GraphState:
        result = self.services.retriever.retrieve(state["question"], state.get("top_k", 6))

        timings = _with_timing(state, "retrieval_ms", result.retrieval_ms)
        if result.rerank_ms is not None:
            timings["rerank_ms"] = result.rerank_ms

        logger.info(
            "Retrieve node completed",
            extra={"context": {"documents": len(result.documents), "rerank_degraded": result.rerank_degraded}},
        )
        return {
            "documents": result.documents,
            "rerank_degraded": result.rerank_degraded,
            "timings": timings,
        }

    def not_found(self, state: GraphState) -> GraphState:
        logger.info("No documents retrieved; skipping answer generation")
        return {"answer": NOT_FOUND_ANSWER, "citations": [], "found": False}

    @_stage("check_summarization")
    def check_summarization(self, state: GraphState) -> GraphState:
        documents = state.get("documents", [])
        needed = needs_summarization(documents, state.get("complexity", QuestionComplexity.MODERATE))
        logger.info(
            "Summarization check",
            extra={
                "context": {
                    "needs_summarization": needed,
                    "documents": len(documents),
                    "complexity": str(state.get("complexity")),
                }
            },
        )
        return {"needs_summarization": needed}

    @_stage("summarize")
    def summarize(self, state: GraphState) -> GraphState:
        result = self.services.summarizer.summarize(state["question"], state["documents"])
        return {
            "summary": result.summarized_context,
            "timings": _with_timing(state, "summarization_ms", result.elapsed_ms),
        }

    @_stage("answer")
    def answer(self, state: GraphState) -> GraphState:
        summary = state.get("summary")
        result = self.services.answerer.answer(
            state["question"],
            documents=None if summary else state.get("documents", []),
            summary=summary or None,
            include_snippets=state.get("include_snippets", True),
            category=state.get("category"),
        )
        return {
            "answer": result.answer,
            "citations": result.citations,
            "found": True,
            "timings": _with_timing(state, "answer_ms", result.elapsed_ms),
        }
