"""Tests for chunking and stable chunk ids."""

from __future__ import annotations

import re

import pytest
from langchain_core.documents import Document

from ragdesk.data.chunking import split_documents
from ragdesk.utils.ids import safe_chunk_id


def _sample_documents() -> list[Document]:
    long_text = (
        "Annual leave accrues monthly for every full-time employee. "
        "Unused days may be carried over into the first quarter. "
        "Requests must be approved by a line manager in advance. "
        "Sick leave is tracked separately from annual leave. "
        * 10
    )

    return [
        Document(
            page_content=long_text,
            metadata={
                "doc_id": "doc_test_001",
                "source_path": "/data/hr/Leave Policy (2026).txt",
                "filename": "Leave Policy (2026).txt",
                "category": "hr",
                "created_utc": "2026-01-01T00:00:00+00:00",
            },
        )
    ]


def test_chunk_counts_and_metadata_preserved() -> None:
    """Chunks should keep the source metadata and gain a chunk id."""

    chunks = split_documents(_sample_documents(), chunk_size=200, chunk_overlap=40)

    assert len(chunks) > 1
    path_hashes = set()
    for idx, chunk in enumerate(chunks):
        assert chunk.metadata["doc_id"] == "doc_test_001"
        assert chunk.metadata["category"] == "hr"
        assert chunk.metadata["filename"] == "Leave Policy (2026).txt"
        assert chunk.metadata["chunk_index"] == idx
        chunk_id = chunk.metadata["chunk_id"]
        assert chunk_id == safe_chunk_id("/data/hr/Leave Policy (2026).txt", idx)
        assert chunk_id.startswith("Leave_Policy__2026_-")
        assert chunk_id.endswith(f"-{idx}")
        path_hashes.add(chunk_id.split("-")[1])
    assert len(path_hashes) == 1


def test_chunk_lengths_and_overlap() -> None:
    """Chunks should respect bounds and repeat trailing words from the previous chunk."""

    document = Document(
        page_content=" ".join(f"word{i}" for i in range(200)),
        metadata={"filename": "words.txt"},
    )

    chunks = split_documents([document], chunk_size=180, chunk_overlap=30)

    assert len(chunks) >= 2
    assert all(len(c.page_content) <= 180 for c in chunks)
    for previous, current in zip(chunks, chunks[1:]):
        assert previous.page_content.split()[-1] in current.page_content.split()


@pytest.mark.parametrize(
    ("chunk_size", "chunk_overlap"),
    [(0, 0), (100, -1), (100, 100)],
)
def test_invalid_chunk_arguments(chunk_size: int, chunk_overlap: int) -> None:
    with pytest.raises(ValueError):
        split_documents(_sample_documents(), chunk_size=chunk_size, chunk_overlap=chunk_overlap)


def test_safe_chunk_id_sanitizes_file_stem() -> None:
    chunk_id = safe_chunk_id("reports/Q3 results+notes.md", 4)

    assert chunk_id.startswith("Q3_results_notes-")
    assert chunk_id.endswith("-4")
    assert re.fullmatch(r"[A-Za-z0-9_\-=]+", chunk_id)
    assert safe_chunk_id("reports/Q3 results+notes.md", 4) == chunk_id


def test_safe_chunk_id_separates_files_sharing_a_stem() -> None:
    ids = {
        safe_chunk_id("hr/policy.md", 0),
        safe_chunk_id("finance/policy.md", 0),
        safe_chunk_id("policy.txt", 0),
    }

    assert len(ids) == 3
    assert all(chunk_id.startswith("policy-") for chunk_id in ids)
