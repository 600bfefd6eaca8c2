"""Graph construction, orchestration entrypoint and CLI.

The pipeline is strictly linear with two branches:

    classify -> retrieve -> not_found -> END
                         -> check_summarization -> summarize -> answer -> END
                                                -> answer -> END
"""

from __future__ import annotations

import argparse
import time
import uuid
from typing import Any

from langgraph.graph import END, START, StateGraph

from ragdesk.config import settings
from ragdesk.graph.nodes import PipelineNodes, route_after_check, route_after_retrieve
from ragdesk.graph.state import GraphState
from ragdesk.rag.errors import PipelineError
from ragdesk.rag.schemas import PipelineResult, QuestionCategory, QuestionComplexity, StageTimings
from ragdesk.services import PipelineServices, build_services
from ragdesk.utils.logging import bind_correlation_id, configure_logging, get_logger
from ragdesk.utils.tracing import configure_langsmith_tracing

logger = get_logger(__name__)


def build_graph(nodes: PipelineNodes) -> Any:
    """Build and compile the LangGraph state machine."""

    graph = StateGraph(GraphState)

    graph.add_node("classify", nodes.classify)
    graph.add_node("retrieve", nodes.retrieve)
    graph.add_node("not_found", nodes.not_found)
    graph.add_node("check_summarization", nodes.check_summarization)
    graph.add_node("summarize", nodes.summarize)
    graph.add_node("answer", nodes.answer)

    graph.add_edge(START, "classify")
    graph.add_edge("classify", "retrieve")
    graph.add_conditional_edges(
        "retrieve",
        route_after_retrieve,
        {
            "not_found": "not_found",
            "check_summarization": "check_summarization",
        },
    )
    graph.add_conditional_edges(
        "check_summarization",
        route_after_check,
        {
            "summarize": "summarize",
            "answer": "answer",
        },
    )
    graph.add_edge("summarize", "answer")
    graph.add_edge("not_found", END)
    graph.add_edge("answer", END)

    return graph.compile()


class RagOrchestrator:
    """Run one question through classify, retrieve, summarize and answer."""

    def __init__(self, services: PipelineServices) -> None:
        self.services = services
        self.app = build_graph(PipelineNodes(services))

    def run(
        self,
        question: str,
        *,
        top_k: int = settings.default_top_k,
        include_snippets: bool = True,
        request_id: str | None = None,
    ) -> PipelineResult:
        """Execute the pipeline for one question.

        Raises
        ------
        PipelineError
            If any stage fails. No partial result is returned.
        """

        request_id = request_id or uuid.uuid4().hex
        started = time.perf_counter()

        logger.info(
            "Starting orchestration",
            extra={"context": {"request_id": request_id, "top_k": top_k, "question": question[:100]}},
        )

        initial_state: GraphState = {
            "question": question,
            "top_k": top_k,
            "include_snippets": include_snippets,
            "request_id": request_id,
            "timings": {},
        }

        try:
            final_state = self.app.invoke(initial_state)
        except PipelineError:
            logger.error("Orchestration failed", extra={"context": {"request_id": request_id}})
            raise
        except Exception as exc:
            logger.error(
                "Orchestration failed",
                extra={"context": {"request_id": request_id, "error": str(exc)}},
            )
            raise PipelineError(f"Orchestration failed: {exc}", stage="orchestrator") from exc

        if not final_state.get("answer"):
            raise PipelineError("Orchestration failed: no answer generated", stage="answer")

        timings = dict(final_state.get("timings", {}))
        timings["total_ms"] = (time.perf_counter() - started) * 1000

        result = PipelineResult(
            answer=final_state["answer"],
            citations=final_state.get("citations", []),
            request_id=request_id,
            category=final_state.get("category", QuestionCategory.GENERAL),
            complexity=final_state.get("complexity", QuestionComplexity.MODERATE),
            documents_retrieved=len(final_state.get("documents", [])),
            used_summarization=bool(final_state.get("summary")),
            found=bool(final_state.get("found", True)),
            classification_degraded=bool(final_state.get("classification_degraded", False)),
            rerank_degraded=bool(final_state.get("rerank_degraded", False)),
            timings=StageTimings(**timings),
        )

        logger.info(
            "Orchestration completed",
            extra={
                "context": {
                    "request_id": request_id,
                    "category": result.category.value,
                    "complexity": result.complexity.value,
                    "documents": result.documents_retrieved,
                    "used_summarization": result.used_summarization,
                    "found": result.found,
                    "total_ms": round(result.timings.total_ms, 1),
                }
            },
        )
        return result


_orchestrator: RagOrchestrator | None = None


def get_orchestrator() -> RagOrchestrator:
    """Return the process-wide orchestrator, wiring real services on first use."""

    global _orchestrator
    if _orchestrator is None:
        _orchestrator = RagOrchestrator(build_services())
    return _orchestrator


def run_pipeline(
    question: str,
    *,
    top_k: int = settings.default_top_k,
    include_snippets: bool = True,
    request_id: str | None = None,
) -> PipelineResult:
    return get_orchestrator().run(
        question,
        top_k=top_k,
        include_snippets=include_snippets,
        request_id=request_id,
    )


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Answer a question with the RAG pipeline")
    parser.add_argument("--question", type=str, required=True)
    parser.add_argument("--top-k", type=int, default=settings.default_top_k)
    parser.add_argument("--include-snippets", type=int, default=1)
    parser.add_argument("--debug", type=int, default=0)
    return parser


def main() -> None:
    args = _build_arg_parser().parse_args()
    configure_logging(debug=bool(args.debug))
    configure_langsmith_tracing()

    request_id = uuid.uuid4().hex
    bind_correlation_id(request_id)

    result = run_pipeline(
        args.question,
        top_k=args.top_k,
        include_snippets=bool(args.include_snippets),
        request_id=request_id,
    )
    print(result.model_dump_json(indent=2))


if __name__ == "__main__":
    main()
