"""Tests for the batching indexing pipeline."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from conftest import FakeVectorStore
from corpus_rag.errors import UpstreamError
from corpus_rag.ingestion.indexer import IndexingPipeline
from corpus_rag.ingestion.models import Chunk
from corpus_rag.retrieval.models import flatten_metadata, record_id


def _chunks(n: int, source: str = "doc.md") -> list[Chunk]:
    return [
        Chunk(
            text=f"chunk number {i}",
            metadata={
                "source": source,
                "fileName": source,
                "chunkIndex": i,
                "type": "prose",
                "createdAt": "2024-01-01T00:00:00+00:00",
            },
        )
        for i in range(n)
    ]


class _ServiceUnavailable(Exception):
    status_code = 503


def test_empty_input_is_a_no_op(fake_store: FakeVectorStore) -> None:
    embeddings = MagicMock()
    pipeline = IndexingPipeline(fake_store, embeddings)

    assert pipeline.index([], "docs_documents") == 0
    embeddings.embed_documents.assert_not_called()
    assert fake_store.upserts == []


def test_batches_run_in_order(fake_store: FakeVectorStore, fake_embeddings) -> None:
    pipeline = IndexingPipeline(fake_store, fake_embeddings, batch_size=50)

    written = pipeline.index(_chunks(120), "docs_documents")

    assert written == 120
    assert [len(batch) for _, batch in fake_store.upserts] == [50, 50, 20]
    indices = [r.metadata["chunkIndex"] for r in fake_store.records("docs_documents")]
    assert indices == list(range(120))


def test_batch_size_override(fake_store: FakeVectorStore, fake_embeddings) -> None:
    pipeline = IndexingPipeline(fake_store, fake_embeddings, batch_size=50)
    pipeline.index(_chunks(7), "c", batch_size=3)
    assert [len(batch) for _, batch in fake_store.upserts] == [3, 3, 1]


def test_upsert_failure_halts_remaining_batches(fake_embeddings) -> None:
    store = FakeVectorStore(fail_on_upsert=2)
    pipeline = IndexingPipeline(store, fake_embeddings, batch_size=50)

    with pytest.raises(UpstreamError) as excinfo:
        pipeline.index(_chunks(120), "docs_documents")

    assert excinfo.value.operation == "upsert"
    assert len(store.upserts) == 1


def test_embed_failure_keeps_upstream_status(fake_store: FakeVectorStore) -> None:
    embeddings = MagicMock()
    embeddings.embed_documents.side_effect = _ServiceUnavailable("overloaded")
    pipeline = IndexingPipeline(fake_store, embeddings)

    with pytest.raises(UpstreamError) as excinfo:
        pipeline.index(_chunks(3), "docs_documents")

    assert excinfo.value.operation == "embed"
    assert excinfo.value.status_code == 503
    assert fake_store.upserts == []


def test_vector_count_mismatch_is_an_upstream_error(fake_store: FakeVectorStore) -> None:
    embeddings = MagicMock()
    embeddings.embed_documents.return_value = [[0.0, 1.0]]
    pipeline = IndexingPipeline(fake_store, embeddings)

    with pytest.raises(UpstreamError, match="1 vectors for 2 texts"):
        pipeline.index(_chunks(2), "docs_documents")


def test_invalid_batch_size(fake_store: FakeVectorStore, fake_embeddings) -> None:
    with pytest.raises(ValueError):
        IndexingPipeline(fake_store, fake_embeddings, batch_size=0)


class TestRecords:
    def test_record_ids_are_stable_and_distinct(self) -> None:
        a, b = _chunks(2)
        assert record_id(a) == record_id(_chunks(1)[0])
        assert record_id(a) != record_id(b)
        assert record_id(a) != record_id(_chunks(1, source="other.md")[0])

    def test_flatten_metadata(self) -> None:
        flat = flatten_metadata(
            {"title": "A", "count": 2, "tags": ["x", "y"], "nested": {"k": 1}, "missing": None}
        )
        assert flat == {"title": "A", "count": 2, "tags": "x, y", "nested": '{"k": 1}'}
