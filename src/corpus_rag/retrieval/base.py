"""Abstract base class for vector-store backends.

Adding a new backend (Qdrant, Pinecone, Weaviate …) only requires
subclassing :class:`VectorStoreBase` and implementing the three abstract
methods.  The ingestion and query paths are backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from corpus_rag.retrieval.models import IndexRecord


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface.

    Collections are addressed by their physical name on every call, so a
    single store instance serves all corpora.
    """

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def upsert(self, collection: str, records: list[IndexRecord]) -> None:
        """Insert or overwrite *records* in *collection*.

        The collection is created on first use.
        """
        ...

    @abstractmethod
    def similarity_search(
        self,
        collection: str,
        query_embedding: list[float],
        *,
        k: int = 10,
    ) -> list[dict[str, Any]]:
        """Return the top-*k* results matching *query_embedding*.

        Each result dict **must** contain at least:

        * ``"id"`` – record identifier
        * ``"content"`` – the textual content
        * ``"score"`` – similarity score (higher = more similar)
        * ``"metadata"`` – associated metadata dict
        """
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...
