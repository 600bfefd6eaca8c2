"""Question classifier.

Routes a question to a category and complexity with a JSON-mode chat call.
Classification only steers tone and summarization, so any failure degrades
to a default `general/moderate` label instead of failing the request.
"""

from __future__ import annotations

import json
import re
import time
from typing import Any

from pydantic import ValidationError

from ragdesk.config import settings
from ragdesk.rag.prompts import CLASSIFICATION_USER_TEMPLATE, classification_system_prompt
from ragdesk.rag.schemas import Classification, Outcome, QuestionCategory, QuestionComplexity
from ragdesk.utils.llm import message_text
from ragdesk.utils.logging import get_logger
from ragdesk.utils.resilience import call_with_retry
from ragdesk.utils.tracing import traceable

logger = get_logger(__name__)

MAX_QUESTION_LENGTH = 2000
MIN_CONFIDENCE_THRESHOLD = 0.6
MAX_CLASSIFIER_TOKENS = 300
FALLBACK_CONFIDENCE = 0.5

_FENCE_RE = re.compile(r"^```(?:json)?", re.IGNORECASE)


def fallback_classification(reasoning: str, confidence: float = FALLBACK_CONFIDENCE) -> Classification:
    return Classification(
        category=QuestionCategory.GENERAL,
        complexity=QuestionComplexity.MODERATE,
        confidence=confidence,
        reasoning=reasoning,
    )


def parse_classification(raw_text: str) -> Classification:
    """Parse and validate a classifier reply.

    Raises
    ------
    ValueError
        If the reply is empty, not JSON, or violates the label schema.
    """

    text = raw_text.strip()
    if text.startswith("```"):
        text = _FENCE_RE.sub("", text).strip()
        text = text.rstrip("`").strip()

    if not text:
        raise ValueError("Classifier returned an empty reply")

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Classifier returned non-JSON output: {text[:200]}") from exc

    if not isinstance(payload, dict):
        raise ValueError("Classifier reply must be a JSON object")

    try:
        return Classification.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Classifier reply failed validation: {exc.error_count()} error(s)") from exc


class QuestionClassifier:
    """Classify questions with a chat model, degrading to a default label."""

    def __init__(
        self,
        llm: Any,
        *,
        max_retries: int = settings.classifier_max_retries,
        backoff_seconds: float = settings.classifier_backoff_seconds,
    ) -> None:
        self.llm = llm
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds

    def _classify_once(self, question: str, *, strict: bool) -> Classification:
        response = self.llm.invoke(
            [
                {"role": "system", "content": classification_system_prompt(strict=strict)},
                {"role": "user", "content": CLASSIFICATION_USER_TEMPLATE.format(question=question)},
            ],
            max_tokens=MAX_CLASSIFIER_TOKENS,
        )
        return parse_classification(message_text(response))

    @traceable(name="classify_question", run_type="llm")
    def classify(self, question: str) -> Outcome[Classification]:
        """Classify one question.

        Later attempts use a stricter JSON-only prompt. The outcome is marked
        degraded when the default label had to be substituted.
        """

        started = time.perf_counter()

        if len(question) > MAX_QUESTION_LENGTH:
            logger.warning(
                "Question exceeds classifier limit; truncating",
                extra={"context": {"length": len(question), "limit": MAX_QUESTION_LENGTH}},
            )
            question = question[:MAX_QUESTION_LENGTH]

        if not question.strip():
            logger.warning("Empty question; using fallback classification")
            return Outcome(
                value=fallback_classification("Empty question"),
                degraded=True,
                reason="empty_question",
            )

        try:
            validated = call_with_retry(
                lambda attempt: self._classify_once(question, strict=attempt > 0),
                retries=self.max_retries,
                backoff_in_seconds=self.backoff_seconds,
                label="classifier",
            )
        except Exception as exc:
            logger.error(
                "Classification failed; using fallback classification",
                extra={"context": {"error": str(exc)}},
            )
            return Outcome(
                value=fallback_classification("Fallback classification"),
                degraded=True,
                reason="classification_failed",
            )

        elapsed_ms = (time.perf_counter() - started) * 1000

        if validated.confidence < MIN_CONFIDENCE_THRESHOLD:
            logger.info(
                "Low-confidence classification downgraded",
                extra={
                    "context": {
                        "original_category": validated.category.value,
                        "confidence": validated.confidence,
                        "elapsed_ms": round(elapsed_ms, 1),
                    }
                },
            )
            return Outcome(
                value=fallback_classification("Low confidence fallback", confidence=validated.confidence),
                degraded=True,
                reason="low_confidence",
            )

        logger.info(
            "Question classified",
            extra={
                "context": {
                    "category": validated.category.value,
                    "complexity": validated.complexity.value,
                    "confidence": validated.confidence,
                    "elapsed_ms": round(elapsed_ms, 1),
                }
            },
        )
        return Outcome(value=validated)

    def classify_many(self, questions: list[str]) -> list[Outcome[Classification]]:
        """Classify a batch of questions one after another."""

        return [self.classify(question) for question in questions]
