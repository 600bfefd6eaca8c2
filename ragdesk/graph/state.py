"""State schema for the question-answering graph."""

from __future__ import annotations

from typing import TypedDict

from ragdesk.rag.schemas import Citation, QuestionCategory, QuestionComplexity, RetrievedDocument


class GraphState(TypedDict, total=False):
    """State passed between LangGraph nodes; each node returns only its updates."""

    question: str
    top_k: int
    include_snippets: bool
    request_id: str

    category: QuestionCategory
    complexity: QuestionComplexity
    classification_degraded: bool

    documents: list[RetrievedDocument]
    rerank_degraded: bool

    needs_summarization: bool
    summary: str

    answer: str
    citations: list[Citation]
    found: bool

    timings: dict[str, float]
