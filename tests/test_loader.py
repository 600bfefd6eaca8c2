"""Tests for local document loading and the ingestion job."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import FakeIndex

from ragdesk.data.cleaners import clean_document_text, normalize_text
from ragdesk.data.loader import discover_files, load_documents
from ragdesk.indexing.cli_index import run_indexing
from ragdesk.indexing.embedder import DeterministicHashEmbeddings, get_embedder
from ragdesk.indexing.indexer import build_vector_metadata


def _write_corpus(root: Path) -> None:
    (root / "nested").mkdir()
    (root / "leave.txt").write_text("Annual leave is 25 days.\r\n\r\n\r\n\r\nCarry over is allowed.", encoding="utf-8")
    (root / "nested" / "expenses.md").write_text("# Expenses\n\nSubmit receipts within 30 days.", encoding="utf-8")
    (root / "empty.txt").write_text("   \n", encoding="utf-8")
    (root / "image.png").write_bytes(b"\x89PNG")


def test_discover_files_filters_extensions(tmp_path: Path) -> None:
    _write_corpus(tmp_path)

    names = [path.name for path in discover_files(tmp_path)]
    assert names == ["empty.txt", "leave.txt", "expenses.md"]


def test_discover_files_missing_path(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        discover_files(tmp_path / "missing")


def test_load_documents_skips_empty_and_sets_metadata(tmp_path: Path) -> None:
    _write_corpus(tmp_path)

    documents = load_documents(tmp_path, category="finance")

    assert [doc.metadata["filename"] for doc in documents] == ["leave.txt", "expenses.md"]
    for doc in documents:
        assert doc.metadata["category"] == "finance"
        assert doc.metadata["doc_id"].startswith("doc_")
        assert doc.metadata["created_utc"]
    assert "\r" not in documents[0].page_content
    assert "\n\n\n" not in documents[0].page_content


def test_normalize_text_handles_none_and_control_chars() -> None:
    assert normalize_text(None) == ""
    assert normalize_text("a\x00b  c\t\td") == "ab c d"


def test_markdown_front_matter_and_comments_are_removed() -> None:
    raw = "---\ntitle: Expenses\nowner: finance\n---\n# Expenses\n<!-- draft -->\nSubmit receipts."

    assert clean_document_text(raw, suffix=".md") == "# Expenses\n\nSubmit receipts."
    assert clean_document_text(raw, suffix=".txt").startswith("---")


def test_run_indexing_upserts_chunks(tmp_path: Path) -> None:
    _write_corpus(tmp_path)
    index = FakeIndex()

    stats = run_indexing(
        path=str(tmp_path),
        category="hr",
        namespace="pytest",
        chunk_size=200,
        chunk_overlap=20,
        embedder=DeterministicHashEmbeddings(dimension=8),
        index=index,
    )

    assert stats["documents"] == 2
    assert stats["chunks"] == 2
    assert stats["upserted"] == 2
    assert stats["embedding_dimension"] == 8

    vectors = index.upserts[0]["vectors"]
    assert index.upserts[0]["namespace"] == "pytest"
    assert sorted(vector_id.split("-")[0] for vector_id, _, _ in vectors) == ["expenses", "leave"]
    assert all(vector_id.endswith("-0") for vector_id, _, _ in vectors)
    for _, values, metadata in vectors:
        assert len(values) == 8
        assert metadata["category"] == "hr"
        assert metadata["content"]


def test_files_sharing_a_stem_get_distinct_stable_ids(tmp_path: Path) -> None:
    (tmp_path / "hr").mkdir()
    (tmp_path / "finance").mkdir()
    (tmp_path / "hr" / "policy.md").write_text("Annual leave is 25 days.", encoding="utf-8")
    (tmp_path / "finance" / "policy.md").write_text("Receipts are due within 30 days.", encoding="utf-8")
    (tmp_path / "policy.txt").write_text("Laptops are refreshed every three years.", encoding="utf-8")

    def _ingest() -> list[str]:
        index = FakeIndex()
        run_indexing(
            path=str(tmp_path),
            category="general",
            namespace="pytest",
            chunk_size=200,
            chunk_overlap=20,
            embedder=DeterministicHashEmbeddings(dimension=8),
            index=index,
        )
        return [vector_id for batch in index.upserts for vector_id, _, _ in batch["vectors"]]

    first_run = _ingest()

    assert len(first_run) == 3
    assert len(set(first_run)) == 3
    assert all(vector_id.startswith("policy-") for vector_id in first_run)
    assert sorted(_ingest()) == sorted(first_run)


def test_vector_metadata_round_trips_into_retriever_keys(tmp_path: Path) -> None:
    _write_corpus(tmp_path)
    metadata = build_vector_metadata(load_documents(tmp_path)[0])

    assert set(metadata) >= {"content", "filename", "category", "created_utc"}


def test_hash_embeddings_are_deterministic() -> None:
    embedder = DeterministicHashEmbeddings(dimension=16)

    assert embedder.embed_query("leave") == embedder.embed_query("leave")
    assert embedder.embed_query("leave") != embedder.embed_query("expenses")
    assert sum(value * value for value in embedder.embed_query("leave")) == pytest.approx(1.0)
    with pytest.raises(ValueError):
        embedder.embed_query("")


def test_get_embedder_rejects_unknown_backend() -> None:
    with pytest.raises(ValueError):
        get_embedder("word2vec")
