"""Structured schema models passed between pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, Field

MAX_REASONING_LENGTH = 300

T = TypeVar("T")


class QuestionCategory(str, Enum):
    HR = "hr"
    TRADING = "trading"
    TECHNICAL = "technical"
    GENERAL = "general"
    FINANCE = "finance"
    COMPLIANCE = "compliance"


class QuestionComplexity(str, Enum):
    SIMPLE = "simple"  # single concept, one document likely sufficient
    MODERATE = "moderate"  # needs synthesis from a few documents
    COMPLEX = "complex"  # multi-faceted, many documents


class Classification(BaseModel):
    """Labels produced once per question by the classifier."""

    category: QuestionCategory
    complexity: QuestionComplexity
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str = Field(max_length=MAX_REASONING_LENGTH)


class RetrievedDocument(BaseModel):
    """One indexed chunk returned by the retriever.

    `score` is the single authoritative relevance value: vector similarity,
    or the reranker score when reranking ran.
    """

    id: str
    content: str
    filename: str = "unknown"
    category: str = "general"
    created_utc: str = ""
    score: float = 0.0


class RetrievalResult(BaseModel):
    documents: list[RetrievedDocument]
    retrieval_ms: float
    rerank_ms: float | None = None
    reranked: bool = False
    rerank_degraded: bool = False


class SummarizationResult(BaseModel):
    summarized_context: str
    original_doc_count: int
    tokens_used: int | None = None
    strategy: Literal["direct", "map_reduce"] = "direct"
    elapsed_ms: float = 0.0


class Citation(BaseModel):
    """Display projection of a retrieved document (or the summary placeholder)."""

    id: str
    score: float
    filename: str
    category: str
    snippet: str | None = None


class AnswerResult(BaseModel):
    answer: str
    citations: list[Citation]
    elapsed_ms: float = 0.0


class StageTimings(BaseModel):
    classification_ms: float = 0.0
    retrieval_ms: float = 0.0
    rerank_ms: float | None = None
    summarization_ms: float | None = None
    answer_ms: float = 0.0
    total_ms: float = 0.0


class PipelineResult(BaseModel):
    """Final output of one orchestrated request."""

    answer: str
    citations: list[Citation]
    request_id: str
    category: QuestionCategory
    complexity: QuestionComplexity
    documents_retrieved: int
    used_summarization: bool
    found: bool = True
    classification_degraded: bool = False
    rerank_degraded: bool = False
    timings: StageTimings


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a stage that may have succeeded through a fallback path."""

    value: T
    degraded: bool = False
    reason: str | None = None
