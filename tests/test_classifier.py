"""Tests for question classification and its degraded fallbacks."""

from __future__ import annotations

import json

import pytest
from conftest import FakeChatModel

from ragdesk.agents.classifier import (
    MAX_QUESTION_LENGTH,
    QuestionClassifier,
    parse_classification,
)
from ragdesk.rag.prompts import STRICT_JSON_SUFFIX
from ragdesk.rag.schemas import QuestionCategory, QuestionComplexity


def _reply(**overrides: object) -> str:
    payload = {
        "category": "hr",
        "complexity": "simple",
        "confidence": 0.92,
        "reasoning": "Asks about leave policy.",
    }
    payload.update(overrides)
    return json.dumps(payload)


def _classifier(llm: FakeChatModel, retries: int = 1) -> QuestionClassifier:
    return QuestionClassifier(llm, max_retries=retries, backoff_seconds=0.0)


def test_valid_reply_is_returned_unchanged() -> None:
    """A confident, well-formed reply should pass straight through."""

    outcome = _classifier(FakeChatModel([_reply()])).classify("How many vacation days do I get?")

    assert not outcome.degraded
    assert outcome.value.category is QuestionCategory.HR
    assert outcome.value.complexity is QuestionComplexity.SIMPLE
    assert outcome.value.confidence == pytest.approx(0.92)


def test_malformed_then_valid_reply_uses_strict_retry() -> None:
    """First reply is junk; the stricter second attempt should succeed."""

    llm = FakeChatModel(["definitely not json", _reply(category="finance")])
    outcome = _classifier(llm).classify("How do I file an expense report?")

    assert not outcome.degraded
    assert outcome.value.category is QuestionCategory.FINANCE
    assert len(llm.calls) == 2
    assert STRICT_JSON_SUFFIX not in llm.calls[0]["messages"][0]["content"]
    assert STRICT_JSON_SUFFIX in llm.calls[1]["messages"][0]["content"]


def test_low_confidence_degrades_but_keeps_confidence() -> None:
    """Confidence below the threshold falls back to general/moderate."""

    outcome = _classifier(FakeChatModel([_reply(category="trading", confidence=0.4)])).classify("Thoughts?")

    assert outcome.degraded
    assert outcome.reason == "low_confidence"
    assert outcome.value.category is QuestionCategory.GENERAL
    assert outcome.value.complexity is QuestionComplexity.MODERATE
    assert outcome.value.confidence == pytest.approx(0.4)


def test_total_failure_returns_fallback() -> None:
    """Model errors on every attempt must never escape the classifier."""

    llm = FakeChatModel([RuntimeError("groq unavailable")])
    outcome = _classifier(llm).classify("What is the dress code?")

    assert outcome.degraded
    assert outcome.reason == "classification_failed"
    assert outcome.value.category is QuestionCategory.GENERAL
    assert outcome.value.complexity is QuestionComplexity.MODERATE
    assert outcome.value.confidence == pytest.approx(0.5)
    assert len(llm.calls) == 2


def test_invalid_category_is_rejected_and_falls_back() -> None:
    """Labels outside the closed set are treated as a parse failure."""

    llm = FakeChatModel([_reply(category="marketing")])
    outcome = _classifier(llm, retries=0).classify("Who runs the ad campaigns?")

    assert outcome.degraded
    assert outcome.value.category is QuestionCategory.GENERAL


def test_long_question_is_truncated_before_the_call() -> None:
    llm = FakeChatModel([_reply()])
    _classifier(llm).classify("x" * (MAX_QUESTION_LENGTH + 500))

    user_content = llm.calls[0]["messages"][1]["content"]
    assert "x" * MAX_QUESTION_LENGTH in user_content
    assert "x" * (MAX_QUESTION_LENGTH + 1) not in user_content


def test_empty_question_skips_the_model() -> None:
    llm = FakeChatModel([_reply()])
    outcome = _classifier(llm).classify("   ")

    assert outcome.degraded
    assert outcome.reason == "empty_question"
    assert llm.calls == []


def test_parse_classification_strips_code_fences() -> None:
    parsed = parse_classification("```json\n" + _reply(complexity="complex") + "\n```")
    assert parsed.complexity is QuestionComplexity.COMPLEX


@pytest.mark.parametrize("raw", ["", "[1, 2]", '{"category": "hr"}'])
def test_parse_classification_rejects_bad_payloads(raw: str) -> None:
    with pytest.raises(ValueError):
        parse_classification(raw)


def test_classify_many_preserves_order() -> None:
    llm = FakeChatModel([_reply(category="technical"), _reply(category="compliance")])
    outcomes = _classifier(llm).classify_many(["VPN broken?", "Audit schedule?"])

    assert [outcome.value.category for outcome in outcomes] == [
        QuestionCategory.TECHNICAL,
        QuestionCategory.COMPLIANCE,
    ]
