"""Request and response models for the HTTP API.

Fields are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ragdesk.rag.schemas import Citation, QuestionCategory, QuestionComplexity, RetrievedDocument

MAX_QUESTION_CHARS = 1000
MAX_RESULTS_LIMIT = 20


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentModel(ApiModel):
    id: str
    content: str
    filename: str = "unknown"
    category: str = "general"
    created_utc: str = ""
    score: float = 0.0

    @classmethod
    def from_document(cls, document: RetrievedDocument) -> "DocumentModel":
        return cls(**document.model_dump())

    def to_document(self) -> RetrievedDocument:
        return RetrievedDocument(**self.model_dump())


class CitationModel(ApiModel):
    id: str
    score: float
    filename: str
    category: str
    snippet: Optional[str] = None

    @classmethod
    def from_citation(cls, citation: Citation) -> "CitationModel":
        return cls(**citation.model_dump())


class ClassifyRequest(ApiModel):
    question: str = Field(..., min_length=1, max_length=MAX_QUESTION_CHARS)


class ClassifyResponse(ApiModel):
    category: QuestionCategory
    complexity: QuestionComplexity
    confidence: float
    reasoning: str
    degraded: bool = False
    request_id: str
    time_ms: float


class RetrieveRequest(ApiModel):
    question: str = Field(..., min_length=1, max_length=MAX_QUESTION_CHARS)
    max_results: int = Field(default=6, ge=1, le=MAX_RESULTS_LIMIT)
    min_score: Optional[float] = Field(default=None, description="Drop documents scoring below this value")
    use_reranker: Optional[bool] = Field(default=None, description="Override the configured reranker switch")
    category: Optional[QuestionCategory] = Field(default=None, description="Restrict search to one category")


class RetrievalMetrics(ApiModel):
    retrieval_ms: float
    rerank_ms: Optional[float] = None
    reranked: bool = False
    rerank_degraded: bool = False
    documents_returned: int


class RetrieveResponse(ApiModel):
    documents: List[DocumentModel]
    metrics: RetrievalMetrics
    request_id: str


class SummariseRequest(ApiModel):
    question: str = Field(..., min_length=1, max_length=MAX_QUESTION_CHARS)
    documents: List[DocumentModel] = Field(..., min_length=1)


class SummariseResponse(ApiModel):
    summarized_context: str
    original_doc_count: int
    tokens_used: Optional[int] = None
    strategy: Literal["direct", "map_reduce"]
    request_id: str
    time_ms: float


class AnswerRequest(ApiModel):
    question: str = Field(..., min_length=1, max_length=MAX_QUESTION_CHARS)
    documents: Optional[List[DocumentModel]] = None
    summarized_context: Optional[str] = None
    include_text: bool = True
    category: Optional[QuestionCategory] = None


class AnswerResponse(ApiModel):
    answer: str
    citations: List[CitationModel]
    request_id: str
    time_ms: float


class AskRequest(ApiModel):
    question: str = Field(..., min_length=1, max_length=MAX_QUESTION_CHARS)
    max_results: int = Field(default=6, ge=1, le=MAX_RESULTS_LIMIT)
    include_text: bool = True


class AskMetrics(ApiModel):
    classification_ms: float
    retrieval_ms: float
    rerank_ms: Optional[float] = None
    summarization_ms: Optional[float] = None
    answer_ms: float
    total_ms: float


class AskMetadata(ApiModel):
    category: QuestionCategory
    complexity: QuestionComplexity
    documents_retrieved: int
    used_summarization: bool
    found: bool
    classification_degraded: bool = False
    rerank_degraded: bool = False
    metrics: AskMetrics


class AskResponse(ApiModel):
    answer: str
    citations: List[CitationModel]
    request_id: str
    metadata: AskMetadata


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str


class ErrorResponse(ApiModel):
    error: str
    request_id: str
    details: Optional[List[dict]] = None
