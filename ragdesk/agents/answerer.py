"""Grounded answer generation with numbered citations."""

from __future__ import annotations

import re
import time
from typing import Any

from ragdesk.config import settings
from ragdesk.rag.errors import AnswerGenerationError
from ragdesk.rag.prompts import (
    DOCUMENTS_USER_SUFFIX,
    INSUFFICIENT_INFORMATION,
    SUMMARY_USER_TEMPLATE,
    answer_system_prompt,
)
from ragdesk.rag.schemas import AnswerResult, Citation, QuestionCategory, RetrievedDocument
from ragdesk.utils.llm import message_text
from ragdesk.utils.logging import get_logger
from ragdesk.utils.tracing import traceable

logger = get_logger(__name__)

ANSWER_MAX_TOKENS = 1000
ANSWER_TOP_P = 0.9
SNIPPET_LENGTH = 200

CITATION_MARKER_RE = re.compile(r"\[(\d+)\]")

SUMMARY_CITATION = Citation(
    id="summarized",
    score=1.0,
    filename="Multiple documents (summarized)",
    category="Summary",
)

UNCERTAIN_PHRASES = (
    INSUFFICIENT_INFORMATION.lower(),
    "cannot be found",
    "not available in the context",
)


def citation_markers(answer: str) -> list[int]:
    """Return the citation numbers referenced in an answer, in order of appearance."""

    return [int(number) for number in CITATION_MARKER_RE.findall(answer)]


def drop_unknown_markers(answer: str, citation_count: int) -> str:
    """Remove `[n]` markers that do not point at a returned citation."""

    def _replace(match: re.Match[str]) -> str:
        number = int(match.group(1))
        return match.group(0) if 1 <= number <= citation_count else ""

    return CITATION_MARKER_RE.sub(_replace, answer)


def validate_answer(answer: str) -> list[str]:
    """List quality issues with a generated answer; empty means it looks fine."""

    issues: list[str] = []
    if len(answer) < 50:
        issues.append("Answer is too short")
    if not CITATION_MARKER_RE.search(answer):
        issues.append("Answer does not contain citations")

    lowered = answer.lower()
    if any(phrase in lowered for phrase in UNCERTAIN_PHRASES) and len(answer) < 100:
        issues.append("Answer indicates insufficient context")
    return issues


def build_documents_prompt(
    question: str,
    documents: list[RetrievedDocument],
    *,
    include_snippets: bool,
) -> tuple[str, list[Citation]]:
    """Number each document as a source and build the parallel citation list."""

    lines = ["CONTEXT DOCUMENTS:", ""]
    citations: list[Citation] = []

    for number, doc in enumerate(documents, start=1):
        lines.append(f"[{number}] {doc.filename} ({doc.id})")
        if include_snippets:
            lines.append(doc.content)
        else:
            lines.append(f"Category: {doc.category}")
            lines.append(f"Created: {doc.created_utc}")
        lines.append("")

        citations.append(
            Citation(
                id=doc.id,
                score=doc.score,
                filename=doc.filename,
                category=doc.category,
                snippet=(doc.content[:SNIPPET_LENGTH] + "...") if include_snippets else None,
            )
        )

    lines.extend([f"QUESTION: {question}", "", DOCUMENTS_USER_SUFFIX])
    return "\n".join(lines), citations


class GroundedAnswerer:
    """Generate an answer constrained to the supplied documents or summary."""

    def __init__(self, llm: Any, *, base_prompt: str = settings.system_prompt) -> None:
        self.llm = llm
        self.base_prompt = base_prompt

    @traceable(name="generate_answer", run_type="llm")
    def answer(
        self,
        question: str,
        *,
        documents: list[RetrievedDocument] | None = None,
        summary: str | None = None,
        include_snippets: bool = True,
        category: QuestionCategory | None = None,
    ) -> AnswerResult:
        """Answer from documents or from a summary (exactly one of them).

        Raises
        ------
        AnswerGenerationError
            If the model call fails or returns no content. No fallback answer
            is fabricated.
        """

        if (documents is None) == (summary is None):
            raise ValueError("Provide exactly one of documents or summary")

        started = time.perf_counter()
        if documents is not None:
            user_message, citations = build_documents_prompt(
                question, documents, include_snippets=include_snippets
            )
        else:
            user_message = SUMMARY_USER_TEMPLATE.format(summary=summary, question=question)
            # Per-document provenance is gone once the context was summarized.
            citations = [SUMMARY_CITATION.model_copy()]

        try:
            response = self.llm.invoke(
                [
                    {"role": "system", "content": answer_system_prompt(self.base_prompt, category)},
                    {"role": "user", "content": user_message},
                ],
                max_tokens=ANSWER_MAX_TOKENS,
                top_p=ANSWER_TOP_P,
            )
        except Exception as exc:
            raise AnswerGenerationError(f"Answer generation failed: {exc}") from exc

        text = message_text(response)
        if not text:
            raise AnswerGenerationError("Answer generation failed: no answer generated")

        cleaned = drop_unknown_markers(text, len(citations))
        if cleaned != text:
            logger.warning(
                "Removed citation markers without a matching source",
                extra={"context": {"citations": len(citations), "markers": citation_markers(text)}},
            )

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "Answer generated",
            extra={
                "context": {
                    "answer_length": len(cleaned),
                    "citation_count": len(citations),
                    "from_summary": summary is not None,
                    "issues": validate_answer(cleaned),
                    "elapsed_ms": round(elapsed_ms, 1),
                }
            },
        )
        return AnswerResult(answer=cleaned, citations=citations, elapsed_ms=elapsed_ms)
