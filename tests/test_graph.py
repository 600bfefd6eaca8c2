"""End-to-end orchestration tests over in-memory stage dependencies."""

from __future__ import annotations

import json

import pytest
from conftest import FakeChatModel, FakeEmbedder, FakeIndex, FakeReranker, make_match

from ragdesk.agents.answerer import GroundedAnswerer
from ragdesk.agents.classifier import QuestionClassifier
from ragdesk.agents.retriever import DocumentRetriever
from ragdesk.agents.summarizer import DocumentSummarizer
from ragdesk.graph.graph import RagOrchestrator
from ragdesk.graph.nodes import route_after_check, route_after_retrieve
from ragdesk.rag.errors import PipelineError
from ragdesk.rag.prompts import NOT_FOUND_ANSWER
from ragdesk.rag.schemas import QuestionCategory, QuestionComplexity
from ragdesk.services import PipelineServices


def _classification(complexity: str = "simple", category: str = "hr") -> str:
    return json.dumps(
        {"category": category, "complexity": complexity, "confidence": 0.9, "reasoning": "test"}
    )


def _services(
    *,
    matches: list[dict],
    classifier_replies: list | None = None,
    summary_llm: FakeChatModel | None = None,
    answer_llm: FakeChatModel | None = None,
) -> PipelineServices:
    return PipelineServices(
        classifier=QuestionClassifier(
            FakeChatModel(classifier_replies or [_classification()]),
            max_retries=0,
            backoff_seconds=0.0,
        ),
        retriever=DocumentRetriever(embedder=FakeEmbedder(), index=FakeIndex(matches), use_reranker=False),
        summarizer=DocumentSummarizer(summary_llm or FakeChatModel(["summary of everything"])),
        answerer=GroundedAnswerer(answer_llm or FakeChatModel(["You get 25 days of leave [1]."])),
    )


def test_happy_path_answers_from_documents() -> None:
    answer_llm = FakeChatModel(["You get 25 days of leave [1]."])
    services = _services(matches=[make_match(idx, 0.9 - idx * 0.1) for idx in range(3)], answer_llm=answer_llm)

    result = RagOrchestrator(services).run("How much leave do I get?", top_k=6, request_id="req-123")

    assert result.request_id == "req-123"
    assert result.found
    assert not result.used_summarization
    assert result.documents_retrieved == 3
    assert result.category is QuestionCategory.HR
    assert result.complexity is QuestionComplexity.SIMPLE
    assert [citation.id for citation in result.citations] == ["chunk-0", "chunk-1", "chunk-2"]
    assert result.timings.summarization_ms is None
    assert result.timings.total_ms >= result.timings.answer_ms
    assert not result.classification_degraded
    assert not result.rerank_degraded


def test_no_documents_skips_the_answerer() -> None:
    answer_llm = FakeChatModel(["should not be called"])
    services = _services(matches=[], answer_llm=answer_llm)

    result = RagOrchestrator(services).run("What is the parking policy?")

    assert not result.found
    assert result.answer == NOT_FOUND_ANSWER
    assert result.citations == []
    assert result.documents_retrieved == 0
    assert answer_llm.calls == []
    assert result.request_id


def test_complex_question_with_many_documents_is_summarized() -> None:
    summary_llm = FakeChatModel(["partial a", "partial b", "combined summary"])
    answer_llm = FakeChatModel(["Combined answer [1]."])
    services = _services(
        matches=[make_match(idx, 0.99 - idx * 0.01) for idx in range(15)],
        classifier_replies=[_classification(complexity="complex")],
        summary_llm=summary_llm,
        answer_llm=answer_llm,
    )

    result = RagOrchestrator(services).run("Summarize every HR policy", top_k=15)

    assert result.used_summarization
    assert result.documents_retrieved == 15
    assert len(result.citations) == 1
    assert result.citations[0].id == "summarized"
    assert result.timings.summarization_ms is not None
    assert len(summary_llm.calls) == 3
    assert "combined summary" in answer_llm.calls[0]["messages"][1]["content"]


def test_classifier_failure_still_answers() -> None:
    services = _services(
        matches=[make_match(1, 0.8)],
        classifier_replies=[RuntimeError("classifier down")],
    )

    result = RagOrchestrator(services).run("Where is the office?")

    assert result.category is QuestionCategory.GENERAL
    assert result.complexity is QuestionComplexity.MODERATE
    assert result.found
    assert result.classification_degraded
    assert not result.rerank_degraded


def test_reranker_failure_is_reported_on_the_result() -> None:
    services = _services(matches=[make_match(idx, 0.9 - idx * 0.1) for idx in range(4)])
    services.retriever.reranker = FakeReranker(error=RuntimeError("rerank quota exceeded"))
    services.retriever.use_reranker = True

    result = RagOrchestrator(services).run("How much leave do I get?", top_k=2)

    assert result.rerank_degraded
    assert not result.classification_degraded
    assert result.found
    assert [citation.id for citation in result.citations] == ["chunk-0", "chunk-1"]
    assert result.timings.rerank_ms is not None


def test_answer_failure_surfaces_as_pipeline_error() -> None:
    services = _services(
        matches=[make_match(1, 0.8)],
        answer_llm=FakeChatModel([RuntimeError("groq 500")]),
    )

    with pytest.raises(PipelineError) as excinfo:
        RagOrchestrator(services).run("Where is the office?")

    assert excinfo.value.stage == "answer"


def test_retrieval_failure_surfaces_as_pipeline_error() -> None:
    services = _services(matches=[])
    services.retriever.embedder = FakeEmbedder(fail=True)

    with pytest.raises(PipelineError) as excinfo:
        RagOrchestrator(services).run("Where is the office?")

    assert excinfo.value.stage == "retrieve"


def test_routing_functions() -> None:
    assert route_after_retrieve({"documents": []}) == "not_found"
    assert route_after_retrieve({"documents": ["doc"]}) == "check_summarization"
    assert route_after_check({"needs_summarization": True}) == "summarize"
    assert route_after_check({"needs_summarization": False}) == "answer"
