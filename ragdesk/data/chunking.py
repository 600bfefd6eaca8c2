"""Chunking for ingested documents.

Uses LangChain's recursive character splitter. The defaults (3200 characters,
400 overlap) approximate 800-token chunks with 100-token overlap at four
characters per token.
"""

from __future__ import annotations

from collections.abc import Iterable

from langchain_core.documents import Document
from langchain_text_splitters import RecursiveCharacterTextSplitter

from ragdesk.config import settings
from ragdesk.utils.ids import safe_chunk_id
from ragdesk.utils.logging import get_logger

logger = get_logger(__name__)


def split_documents(
    documents: Iterable[Document],
    *,
    chunk_size: int = settings.chunk_size,
    chunk_overlap: int = settings.chunk_overlap,
) -> list[Document]:
    """Split documents into chunks that carry a stable `chunk_id`."""

    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")
    if chunk_overlap < 0:
        raise ValueError("chunk_overlap must be >= 0")
    if chunk_overlap >= chunk_size:
        raise ValueError("chunk_overlap must be < chunk_size")

    splitter = RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        separators=["\n\n", "\n", ". ", " ", ""],
    )

    docs = list(documents)
    chunked_docs: list[Document] = []

    for doc in docs:
        source = doc.metadata.get("source_path") or doc.metadata.get("filename", "unknown")
        for idx, chunk_text in enumerate(splitter.split_text(doc.page_content)):
            metadata = dict(doc.metadata)
            metadata.update(
                {
                    "chunk_id": safe_chunk_id(source, idx),
                    "chunk_index": idx,
                }
            )
            chunked_docs.append(Document(page_content=chunk_text, metadata=metadata))

    logger.info(
        "Chunking completed",
        extra={
            "context": {
                "input_docs": len(docs),
                "output_chunks": len(chunked_docs),
                "chunk_size": chunk_size,
                "chunk_overlap": chunk_overlap,
            }
        },
    )
    return chunked_docs
