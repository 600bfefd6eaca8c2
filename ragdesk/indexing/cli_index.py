"""CLI entrypoint to ingest local documents into the Pinecone index.

Usage:
`python -m ragdesk.indexing.cli_index --path ./docs --category hr`
"""

from __future__ import annotations

import argparse
import json
from typing import Any

from ragdesk.config import settings
from ragdesk.data.chunking import split_documents
from ragdesk.data.loader import load_documents
from ragdesk.indexing.embedder import get_embedder
from ragdesk.indexing.indexer import upsert_documents
from ragdesk.indexing.pinecone_client import get_or_create_index
from ragdesk.rag.schemas import QuestionCategory
from ragdesk.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def run_indexing(
    *,
    path: str,
    category: str,
    namespace: str,
    chunk_size: int = settings.chunk_size,
    chunk_overlap: int = settings.chunk_overlap,
    embedder: Any | None = None,
    index: Any | None = None,
) -> dict[str, Any]:
    """Load, chunk, embed and upsert files; return summary stats."""

    documents = load_documents(path, category=category)
    chunks = split_documents(documents, chunk_size=chunk_size, chunk_overlap=chunk_overlap)

    model_name = "injected"
    if embedder is None:
        embedder, model_name = get_embedder()

    # Embedding dimension is read once from a sample vector.
    sample_vector = embedder.embed_query("dimension check")
    if index is None:
        index = get_or_create_index(expected_dimension=len(sample_vector))

    upsert_stats = upsert_documents(index=index, documents=chunks, embedder=embedder, namespace=namespace)

    return {
        "path": path,
        "category": category,
        "documents": len(documents),
        "chunks": len(chunks),
        "embedding_model": model_name,
        "embedding_dimension": len(sample_vector),
        "namespace": namespace,
        "upserted": upsert_stats["upserted"],
        "batches": upsert_stats["batches"],
    }


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ingest local text files into the Pinecone index")
    parser.add_argument("--path", type=str, required=True)
    parser.add_argument(
        "--category",
        choices=[category.value for category in QuestionCategory],
        default=QuestionCategory.GENERAL.value,
    )
    parser.add_argument("--namespace", type=str, default=settings.pinecone_namespace)
    parser.add_argument("--chunk-size", type=int, default=settings.chunk_size)
    parser.add_argument("--chunk-overlap", type=int, default=settings.chunk_overlap)
    parser.add_argument("--debug", type=int, default=0)
    return parser


def main() -> None:
    args = _build_arg_parser().parse_args()
    configure_logging(debug=bool(args.debug))

    logger.info(
        "Starting ingestion CLI",
        extra={"context": {"path": args.path, "category": args.category, "namespace": args.namespace}},
    )

    result = run_indexing(
        path=args.path,
        category=args.category,
        namespace=args.namespace,
        chunk_size=args.chunk_size,
        chunk_overlap=args.chunk_overlap,
    )

    print(json.dumps(result, indent=2, ensure_ascii=True))


if __name__ == "__main__":
    main()
