"""FastAPI application exposing each pipeline stage and the orchestrated flow.

Run locally:
`python -m ragdesk.api.app`
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import uuid4

import uvicorn
from fastapi import Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ragdesk.api.schemas import (
    AnswerRequest,
    AnswerResponse,
    AskMetadata,
    AskMetrics,
    AskRequest,
    AskResponse,
    CitationModel,
    ClassifyRequest,
    ClassifyResponse,
    DocumentModel,
    ErrorResponse,
    HealthResponse,
    RetrievalMetrics,
    RetrieveRequest,
    RetrieveResponse,
    SummariseRequest,
    SummariseResponse,
)
from ragdesk.config import Settings, settings as default_settings
from ragdesk.graph.graph import RagOrchestrator
from ragdesk.rag.errors import AnswerGenerationError, PipelineError, RetrievalError, SummarizationError
from ragdesk.services import PipelineServices, build_services
from ragdesk.utils.logging import bind_correlation_id, clear_correlation_id, configure_logging, get_logger
from ragdesk.utils.tracing import configure_langsmith_tracing

API_VERSION = "0.1.0"
REQUEST_ID_HEADER = "X-Request-ID"


@dataclass(frozen=True)
class AppDependencies:
    services: PipelineServices
    orchestrator: RagOrchestrator


def _build_dependencies(settings: Settings) -> AppDependencies:
    services = build_services(settings)
    return AppDependencies(services=services, orchestrator=RagOrchestrator(services))


def _request_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or uuid4().hex


def _error_body(error: str, request_id: str, *, details: list | None = None) -> dict:
    body = ErrorResponse(error=error, request_id=request_id, details=details)
    return body.model_dump(by_alias=True, exclude_none=True)


def create_app(*, settings: Settings | None = None, dependencies: AppDependencies | None = None) -> FastAPI:
    settings = settings or default_settings
    deps = dependencies or _build_dependencies(settings)

    configure_logging(debug=settings.debug)
    logger = get_logger("ragdesk.api")
    app = FastAPI(title="ragdesk API", version=API_VERSION)
    app.state.dependencies = deps

    @app.middleware("http")
    async def add_correlation_id(request: Request, call_next):  # type: ignore[override]
        correlation_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        request.state.correlation_id = correlation_id
        bind_correlation_id(correlation_id)
        try:
            response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers[REQUEST_ID_HEADER] = correlation_id
        return response

    async def _stage_error(request: Request, exc: Exception) -> JSONResponse:
        request_id = _request_id(request)
        bind_correlation_id(request_id)
        logger.error(
            "Request failed",
            extra={
                "context": {
                    "request_id": request_id,
                    "path": request.url.path,
                    "stage": getattr(exc, "stage", None),
                    "error": str(exc),
                }
            },
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("Internal server error", request_id),
            headers={REQUEST_ID_HEADER: request_id},
        )

    for error_type in (PipelineError, RetrievalError, SummarizationError, AnswerGenerationError):
        app.add_exception_handler(error_type, _stage_error)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        request_id = _request_id(request)
        logger.warning(
            "Invalid request",
            extra={"context": {"request_id": request_id, "path": request.url.path}},
        )
        return JSONResponse(
            status_code=422,
            content=_error_body("Invalid request", request_id, details=jsonable_encoder(exc.errors())),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        return await _stage_error(request, exc)

    def get_dependencies(request: Request) -> AppDependencies:
        return request.app.state.dependencies

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(
            status="healthy",
            timestamp=datetime.now(timezone.utc).isoformat(),
            version=API_VERSION,
        )

    @app.post("/api/classify", response_model=ClassifyResponse)
    def classify(
        payload: ClassifyRequest,
        request: Request,
        deps: AppDependencies = Depends(get_dependencies),
    ) -> ClassifyResponse:
        request_id = _request_id(request)
        logger.info("Classify request", extra={"context": {"request_id": request_id}})

        started = time.perf_counter()
        outcome = deps.services.classifier.classify(payload.question)
        classification = outcome.value
        return ClassifyResponse(
            category=classification.category,
            complexity=classification.complexity,
            confidence=classification.confidence,
            reasoning=classification.reasoning,
            degraded=outcome.degraded,
            request_id=request_id,
            time_ms=(time.perf_counter() - started) * 1000,
        )

    @app.post("/api/retrieve", response_model=RetrieveResponse)
    def retrieve(
        payload: RetrieveRequest,
        request: Request,
        deps: AppDependencies = Depends(get_dependencies),
    ) -> RetrieveResponse:
        request_id = _request_id(request)
        logger.info(
            "Retrieve request",
            extra={"context": {"request_id": request_id, "max_results": payload.max_results}},
        )

        result = deps.services.retriever.retrieve(
            payload.question,
            payload.max_results,
            min_score=payload.min_score,
            use_reranker=payload.use_reranker,
            category=payload.category.value if payload.category else None,
        )
        return RetrieveResponse(
            documents=[DocumentModel.from_document(doc) for doc in result.documents],
            metrics=RetrievalMetrics(
                retrieval_ms=result.retrieval_ms,
                rerank_ms=result.rerank_ms,
                reranked=result.reranked,
                rerank_degraded=result.rerank_degraded,
                documents_returned=len(result.documents),
            ),
            request_id=request_id,
        )

    @app.post("/api/summarise", response_model=SummariseResponse)
    def summarise(
        payload: SummariseRequest,
        request: Request,
        deps: AppDependencies = Depends(get_dependencies),
    ) -> SummariseResponse:
        request_id = _request_id(request)
        logger.info(
            "Summarise request",
            extra={"context": {"request_id": request_id, "documents": len(payload.documents)}},
        )

        result = deps.services.summarizer.summarize(
            payload.question,
            [doc.to_document() for doc in payload.documents],
        )
        return SummariseResponse(
            summarized_context=result.summarized_context,
            original_doc_count=result.original_doc_count,
            tokens_used=result.tokens_used,
            strategy=result.strategy,
            request_id=request_id,
            time_ms=result.elapsed_ms,
        )

    @app.post("/api/answer", response_model=AnswerResponse)
    def answer(
        payload: AnswerRequest,
        request: Request,
        deps: AppDependencies = Depends(get_dependencies),
    ):
        request_id = _request_id(request)
        if not payload.documents and not payload.summarized_context:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content=_error_body("Either documents or summarizedContext must be provided", request_id),
            )

        logger.info("Answer request", extra={"context": {"request_id": request_id}})

        # A summary takes precedence over raw documents when both are sent.
        summary = payload.summarized_context or None
        documents = None if summary else [doc.to_document() for doc in payload.documents or []]
        result = deps.services.answerer.answer(
            payload.question,
            documents=documents,
            summary=summary,
            include_snippets=payload.include_text,
            category=payload.category,
        )
        return AnswerResponse(
            answer=result.answer,
            citations=[CitationModel.from_citation(citation) for citation in result.citations],
            request_id=request_id,
            time_ms=result.elapsed_ms,
        )

    @app.post("/api/ask", response_model=AskResponse)
    def ask(
        payload: AskRequest,
        request: Request,
        deps: AppDependencies = Depends(get_dependencies),
    ) -> AskResponse:
        request_id = _request_id(request)
        logger.info(
            "Ask request",
            extra={"context": {"request_id": request_id, "question": payload.question[:100]}},
        )

        result = deps.orchestrator.run(
            payload.question,
            top_k=payload.max_results,
            include_snippets=payload.include_text,
            request_id=request_id,
        )
        return AskResponse(
            answer=result.answer,
            citations=[CitationModel.from_citation(citation) for citation in result.citations],
            request_id=result.request_id,
            metadata=AskMetadata(
                category=result.category,
                complexity=result.complexity,
                documents_retrieved=result.documents_retrieved,
                used_summarization=result.used_summarization,
                found=result.found,
                classification_degraded=result.classification_degraded,
                rerank_degraded=result.rerank_degraded,
                metrics=AskMetrics(**result.timings.model_dump()),
            ),
        )

    return app


def main() -> None:
    configure_logging()
    configure_langsmith_tracing()
    app = create_app()
    uvicorn.run(app, host=default_settings.api_host, port=default_settings.api_port)


if __name__ == "__main__":
    main()
