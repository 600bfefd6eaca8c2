"""Summarizer stage.

Condenses retrieved documents when the set is too large to hand straight to
the answerer:
1. more than 10 documents,
2. a complex question with more than 5 documents,
3. an estimated token volume above 8000.

Up to 10 documents are summarized in one call. Larger sets use map-reduce:
groups of 10 are summarized one at a time, then the partial summaries are
combined in a final call.
"""

from __future__ import annotations

import math
import time
from typing import Any

from ragdesk.rag.errors import SummarizationError
from ragdesk.rag.prompts import (
    SUMMARY_REDUCE_SYSTEM_PROMPT,
    SUMMARY_REDUCE_USER_TEMPLATE,
    SUMMARY_SYSTEM_TEMPLATE,
)
from ragdesk.rag.schemas import QuestionComplexity, RetrievedDocument, SummarizationResult
from ragdesk.utils.llm import message_text, total_tokens
from ragdesk.utils.logging import get_logger
from ragdesk.utils.tracing import traceable

logger = get_logger(__name__)

LARGE_SET_THRESHOLD = 10
COMPLEX_SET_THRESHOLD = 5
TOKEN_BUDGET = 8000
CHARS_PER_TOKEN = 4

MAP_GROUP_SIZE = 10
DIRECT_MAX_TOKENS = 2000
MAP_MAX_TOKENS = 1000
REDUCE_MAX_TOKENS = 2000
SUMMARY_TOP_P = 0.9


def estimate_token_count(documents: list[RetrievedDocument]) -> int:
    """Rough token estimate: one token per four characters."""

    total_chars = sum(len(doc.content) for doc in documents)
    return math.ceil(total_chars / CHARS_PER_TOKEN)


def needs_summarization(documents: list[RetrievedDocument], complexity: QuestionComplexity | str) -> bool:
    """Decide whether the document set should be condensed before answering.

    The estimate deliberately over-triggers so the answering call keeps a
    margin inside the model's context window.
    """

    complexity = QuestionComplexity(complexity)

    if len(documents) > LARGE_SET_THRESHOLD:
        return True
    if complexity is QuestionComplexity.COMPLEX and len(documents) > COMPLEX_SET_THRESHOLD:
        return True
    return estimate_token_count(documents) > TOKEN_BUDGET


def build_summary_user_prompt(question: str, documents: list[RetrievedDocument]) -> str:
    lines = [f"QUESTION: {question}", "", f"DOCUMENTS TO SUMMARIZE ({len(documents)} total):", ""]
    for number, doc in enumerate(documents, start=1):
        lines.extend(
            [
                f"--- Document {number} ---",
                f"Source: {doc.filename}",
                f"Category: {doc.category}",
                "Content:",
                doc.content,
                "",
            ]
        )
    lines.append("Provide a concise summary that captures all information relevant to answering the question.")
    return "\n".join(lines)


def partition(documents: list[RetrievedDocument], size: int = MAP_GROUP_SIZE) -> list[list[RetrievedDocument]]:
    return [documents[start : start + size] for start in range(0, len(documents), size)]


class DocumentSummarizer:
    """Summarize retrieved documents with the chat model."""

    def __init__(self, llm: Any) -> None:
        self.llm = llm

    def _complete(self, system: str, user: str, *, max_tokens: int) -> tuple[str, int | None]:
        try:
            response = self.llm.invoke(
                [
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                max_tokens=max_tokens,
                top_p=SUMMARY_TOP_P,
            )
        except Exception as exc:
            raise SummarizationError(f"Summarization failed: {exc}") from exc

        text = message_text(response)
        if not text:
            raise SummarizationError("Summarization failed: no summary generated")
        return text, total_tokens(response)

    def summarize_direct(
        self,
        question: str,
        documents: list[RetrievedDocument],
        *,
        max_tokens: int = DIRECT_MAX_TOKENS,
    ) -> tuple[str, int | None]:
        """One call over every document."""

        return self._complete(
            SUMMARY_SYSTEM_TEMPLATE.format(max_tokens=max_tokens),
            build_summary_user_prompt(question, documents),
            max_tokens=max_tokens,
        )

    def summarize_map_reduce(self, question: str, documents: list[RetrievedDocument]) -> tuple[str, int | None]:
        """Summarize fixed-size groups sequentially, then combine them."""

        partials: list[str] = []
        usage: list[int] = []
        groups = partition(documents)
        for group_number, group in enumerate(groups, start=1):
            text, tokens = self.summarize_direct(question, group, max_tokens=MAP_MAX_TOKENS)
            partials.append(text)
            if tokens is not None:
                usage.append(tokens)
            logger.debug(
                "Map step summarized",
                extra={"context": {"group": group_number, "groups": len(groups), "documents": len(group)}},
            )

        combined, tokens = self._complete(
            SUMMARY_REDUCE_SYSTEM_PROMPT,
            SUMMARY_REDUCE_USER_TEMPLATE.format(question=question, partials="\n\n".join(partials)),
            max_tokens=REDUCE_MAX_TOKENS,
        )
        if tokens is not None:
            usage.append(tokens)

        return combined, (sum(usage) if usage else None)

    @traceable(name="summarize_documents", run_type="chain")
    def summarize(self, question: str, documents: list[RetrievedDocument]) -> SummarizationResult:
        """Condense documents, picking direct or map-reduce by set size.

        Raises
        ------
        SummarizationError
            If any model call fails or returns nothing.
        """

        if not documents:
            raise ValueError("summarize requires at least one document")

        started = time.perf_counter()
        if len(documents) > LARGE_SET_THRESHOLD:
            strategy = "map_reduce"
            text, tokens = self.summarize_map_reduce(question, documents)
        else:
            strategy = "direct"
            text, tokens = self.summarize_direct(question, documents)

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "Documents summarized",
            extra={
                "context": {
                    "strategy": strategy,
                    "original_docs": len(documents),
                    "tokens_used": tokens,
                    "summary_length": len(text),
                    "elapsed_ms": round(elapsed_ms, 1),
                }
            },
        )
        return SummarizationResult(
            summarized_context=text,
            original_doc_count=len(documents),
            tokens_used=tokens,
            strategy=strategy,
            elapsed_ms=elapsed_ms,
        )
