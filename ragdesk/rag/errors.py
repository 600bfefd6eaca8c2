"""Hard failures that abort a request.

Recoverable problems (classifier parse errors, reranker outages) never reach
these types; they are absorbed by the stage and reported as a degraded
`Outcome` instead.
"""

from __future__ import annotations


class RetrievalError(RuntimeError):
    """Embedding or vector search failed."""


class SummarizationError(RuntimeError):
    """The summarization model failed or returned nothing."""


class AnswerGenerationError(RuntimeError):
    """The answering model failed or returned nothing."""


class PipelineError(RuntimeError):
    """A stage failed inside the orchestrator."""

    def __init__(self, message: str, *, stage: str) -> None:
        super().__init__(message)
        self.stage = stage
