"""Load local text files as LangChain `Document` objects for ingestion.

Each document carries the metadata the retriever and answerer rely on:
`filename`, `category`, `created_utc` and a stable `doc_id`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from langchain_core.documents import Document

from ragdesk.data.cleaners import clean_document_text
from ragdesk.utils.ids import build_doc_id
from ragdesk.utils.logging import get_logger

logger = get_logger(__name__)

SUPPORTED_EXTENSIONS = (".txt", ".md")


def discover_files(path: str | Path) -> list[Path]:
    """Return supported files under `path` (or `path` itself), sorted by name."""

    root = Path(path)
    if root.is_file():
        candidates = [root]
    elif root.is_dir():
        candidates = sorted(p for p in root.rglob("*") if p.is_file())
    else:
        raise FileNotFoundError(f"No such file or directory: {root}")

    return [p for p in candidates if p.suffix.lower() in SUPPORTED_EXTENSIONS]


def load_file(file_path: str | Path, *, category: str = "general") -> Document | None:
    """Read one file; empty files yield `None`."""

    file_path = Path(file_path)
    raw = file_path.read_text(encoding="utf-8", errors="replace")
    text = clean_document_text(raw, suffix=file_path.suffix)
    if not text:
        logger.warning("Skipping empty file", extra={"context": {"file": str(file_path)}})
        return None

    return Document(
        page_content=text,
        metadata={
            "doc_id": build_doc_id(file_path.name, text),
            "source_path": str(file_path),
            "filename": file_path.name,
            "category": category,
            "created_utc": datetime.now(timezone.utc).isoformat(),
        },
    )


def load_documents(path: str | Path, *, category: str = "general") -> list[Document]:
    """Load every supported file under `path`."""

    documents: list[Document] = []
    for file_path in discover_files(path):
        document = load_file(file_path, category=category)
        if document is not None:
            documents.append(document)

    logger.info(
        "Loaded documents",
        extra={"context": {"path": str(path), "documents": len(documents), "category": category}},
    )
    return documents
