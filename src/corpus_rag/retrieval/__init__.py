"""
Retrieval — vector search, result formatting, and the query service.

This module wraps the vector store behind a clean interface so that the
serving and agent layers never need to know which DB is backing search.

Public surface
--------------
- :class:`QueryService` — main entry point: query text → formatted results.
- :class:`VectorStoreBase` — abstract backend (subclass for Qdrant, etc.).
- :class:`ChromaVectorStore` — default Chroma backend.
- :class:`SearchResult`, :class:`IndexRecord` — data models.
"""

from corpus_rag.retrieval.base import VectorStoreBase
from corpus_rag.retrieval.models import IndexRecord, SearchResult
from corpus_rag.retrieval.service import QueryService

__all__ = [
    "ChromaVectorStore",
    "IndexRecord",
    "QueryService",
    "SearchResult",
    "VectorStoreBase",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from corpus_rag.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
