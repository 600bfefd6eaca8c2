"""Composition root: build client handles once and inject them into each stage."""

from __future__ import annotations

from dataclasses import dataclass

from ragdesk.agents.answerer import GroundedAnswerer
from ragdesk.agents.classifier import QuestionClassifier
from ragdesk.agents.reranker import PineconeReranker
from ragdesk.agents.retriever import DocumentRetriever
from ragdesk.agents.summarizer import DocumentSummarizer
from ragdesk.config import Settings, settings as default_settings
from ragdesk.indexing.embedder import get_embedder
from ragdesk.indexing.pinecone_client import get_or_create_index, get_pinecone_client
from ragdesk.utils.llm import get_groq_chat_model
from ragdesk.utils.logging import get_logger

logger = get_logger(__name__)

CLASSIFIER_TEMPERATURE = 0.0
SUMMARIZER_TEMPERATURE = 0.2
ANSWERER_TEMPERATURE = 0.1


@dataclass(frozen=True)
class PipelineServices:
    classifier: QuestionClassifier
    retriever: DocumentRetriever
    summarizer: DocumentSummarizer
    answerer: GroundedAnswerer


def build_services(settings: Settings | None = None) -> PipelineServices:
    """Wire every stage to real Groq, embedding and Pinecone handles."""

    settings = settings or default_settings

    classifier_llm = get_groq_chat_model(
        temperature=CLASSIFIER_TEMPERATURE,
        timeout=settings.classifier_timeout_seconds,
        max_retries=0,
        json_mode=True,
    )
    summarizer_llm = get_groq_chat_model(temperature=SUMMARIZER_TEMPERATURE)
    answerer_llm = get_groq_chat_model(temperature=ANSWERER_TEMPERATURE)

    embedder, model_name = get_embedder(settings.embedding_backend)
    sample_vector = embedder.embed_query("dimension check")
    pinecone_client = get_pinecone_client(settings)
    index = get_or_create_index(expected_dimension=len(sample_vector), client=pinecone_client, config=settings)

    reranker = None
    if settings.use_reranker:
        reranker = PineconeReranker(pinecone_client, model=settings.rerank_model)

    logger.info(
        "Pipeline services ready",
        extra={
            "context": {
                "chat_model": settings.groq_model,
                "embedding_model": model_name,
                "index": settings.pinecone_index_name,
                "reranker": settings.rerank_model if reranker else None,
            }
        },
    )

    return PipelineServices(
        classifier=QuestionClassifier(
            classifier_llm,
            max_retries=settings.classifier_max_retries,
            backoff_seconds=settings.classifier_backoff_seconds,
        ),
        retriever=DocumentRetriever(
            embedder=embedder,
            index=index,
            namespace=settings.pinecone_namespace,
            reranker=reranker,
            use_reranker=settings.use_reranker,
        ),
        summarizer=DocumentSummarizer(summarizer_llm),
        answerer=GroundedAnswerer(answerer_llm, base_prompt=settings.system_prompt),
    )
