"""Shared pytest configuration and fixtures."""

from __future__ import annotations

from typing import Any

import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding

from corpus_rag.retrieval.base import VectorStoreBase
from corpus_rag.retrieval.models import IndexRecord


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


class FakeVectorStore(VectorStoreBase):
    """In-memory fake that records upserts and returns canned hits."""

    def __init__(self, hits: list[dict[str, Any]] | None = None, fail_on_upsert: int | None = None) -> None:
        self._hits: list[dict[str, Any]] = hits or []
        self._fail_on_upsert = fail_on_upsert
        self.upserts: list[tuple[str, list[IndexRecord]]] = []
        self.searches: list[tuple[str, list[float], int]] = []

    def upsert(self, collection: str, records: list[IndexRecord]) -> None:
        if self._fail_on_upsert is not None and len(self.upserts) + 1 >= self._fail_on_upsert:
            raise ConnectionError("vector store unavailable")
        self.upserts.append((collection, list(records)))

    def similarity_search(
        self,
        collection: str,
        query_embedding: list[float],
        *,
        k: int = 10,
    ) -> list[dict[str, Any]]:
        self.searches.append((collection, query_embedding, k))
        return self._hits[:k]

    def health_check(self) -> bool:
        return True

    def records(self, collection: str) -> list[IndexRecord]:
        return [r for name, batch in self.upserts if name == collection for r in batch]


@pytest.fixture()
def fake_store() -> FakeVectorStore:
    return FakeVectorStore()


@pytest.fixture()
def fake_embeddings() -> DeterministicFakeEmbedding:
    return DeterministicFakeEmbedding(size=8)
