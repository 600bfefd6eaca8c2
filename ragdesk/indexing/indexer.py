"""Pinecone upsert logic for chunked documents."""

from __future__ import annotations

from typing import Any

from langchain_core.documents import Document

from ragdesk.utils.logging import get_logger

logger = get_logger(__name__)


def build_vector_metadata(doc: Document) -> dict[str, Any]:
    """Metadata stored next to each vector; the retriever reads these keys back."""

    metadata = doc.metadata
    return {
        "content": doc.page_content,
        "filename": str(metadata.get("filename", "unknown")),
        "category": str(metadata.get("category", "general")),
        "created_utc": str(metadata.get("created_utc", "")),
        "doc_id": str(metadata.get("doc_id", "unknown-doc")),
        "chunk_index": int(metadata.get("chunk_index", 0)),
    }


def upsert_documents(
    index: Any,
    documents: list[Document],
    embedder: Any,
    *,
    namespace: str,
    batch_size: int = 100,
) -> dict[str, int]:
    """Embed and upsert chunked documents into Pinecone."""

    if not documents:
        return {"upserted": 0, "batches": 0}

    total = 0
    batches = 0

    for start in range(0, len(documents), batch_size):
        batch_docs = documents[start : start + batch_size]
        vectors = embedder.embed_documents([doc.page_content for doc in batch_docs])

        payload = [
            (str(doc.metadata["chunk_id"]), vector, build_vector_metadata(doc))
            for doc, vector in zip(batch_docs, vectors, strict=True)
        ]

        index.upsert(vectors=payload, namespace=namespace)
        batches += 1
        total += len(payload)

        logger.info(
            "Upserted Pinecone batch",
            extra={"context": {"batch": batches, "batch_size": len(payload), "namespace": namespace}},
        )

    return {"upserted": total, "batches": batches}
