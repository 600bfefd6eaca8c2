"""Embedding model selection for ingestion and retrieval.

Backends:
- `huggingface`: sentence-transformer embeddings (default).
- `hash`: deterministic hash embeddings for offline development and tests.

Ingestion and retrieval must use the same backend, otherwise query vectors
and indexed vectors live in different spaces.
"""

from __future__ import annotations

import hashlib
import math
from dataclasses import dataclass
from typing import Protocol

from ragdesk.config import settings
from ragdesk.utils.logging import get_logger

logger = get_logger(__name__)


class EmbeddingsProtocol(Protocol):
    """Minimal embeddings protocol used by the indexer and retriever."""

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch of documents into vectors."""

    def embed_query(self, text: str) -> list[float]:
        """Embed a query string into one vector."""


@dataclass
class DeterministicHashEmbeddings:
    """Local deterministic embeddings.

    Not semantically meaningful: identical text maps to identical vectors and
    nothing else. Useful to exercise the pipeline without model downloads.
    Vectors are unit length so cosine scores stay within [-1, 1].
    """

    dimension: int = 384

    def _embed_one(self, text: str) -> list[float]:
        blocks = bytearray()
        counter = 0
        while len(blocks) < self.dimension:
            blocks.extend(hashlib.blake2b(f"{counter}:{text}".encode("utf-8"), digest_size=64).digest())
            counter += 1

        raw = [byte / 127.5 - 1.0 for byte in blocks[: self.dimension]]
        norm = math.sqrt(sum(value * value for value in raw)) or 1.0
        return [value / norm for value in raw]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self._embed_one(text) for text in texts]

    def embed_query(self, text: str) -> list[float]:
        if not text or not isinstance(text, str):
            raise ValueError("Query text must be a non-empty string")
        return self._embed_one(text)


def get_embedder(backend: str | None = None) -> tuple[EmbeddingsProtocol, str]:
    """Return an embeddings implementation and a human-readable model label."""

    selected = backend or settings.embedding_backend

    if selected == "hash":
        logger.warning(
            "Using deterministic hash embeddings",
            extra={"context": {"dimension": settings.hash_embedding_dim}},
        )
        return DeterministicHashEmbeddings(dimension=settings.hash_embedding_dim), "deterministic-hash"

    if selected == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings

        logger.info(
            "Using HuggingFace embeddings",
            extra={"context": {"model": settings.hf_embedding_model}},
        )
        return HuggingFaceEmbeddings(model_name=settings.hf_embedding_model), settings.hf_embedding_model

    raise ValueError(f"Unknown embedding backend: {selected}")
