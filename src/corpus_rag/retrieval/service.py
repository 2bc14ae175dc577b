"""Query service — text query → formatted search results.

This is the single query path shared by the HTTP gateway, the agent
tools and the CLI.

Usage::

    from corpus_rag.retrieval.service import QueryService

    service = QueryService.from_settings()
    for r in service.search("code", "how are proofs verified?", k=5):
        print(r.score, r.content[:80])
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from corpus_rag.config import Settings, settings
from corpus_rag.errors import UpstreamError, ValidationError
from corpus_rag.retrieval import formatting
from corpus_rag.retrieval.models import SearchResult

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

    from corpus_rag.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 2000


class QueryService:
    """Embed a query, search one collection and post-process the hits.

    Parameters
    ----------
    store:
        Vector-store backend.
    embeddings:
        LangChain embeddings implementation (``embed_query``).
    config:
        Settings used to resolve logical collection names.
    default_k:
        Number of results when the caller does not ask for a specific count.
    format_results:
        Apply :func:`~corpus_rag.retrieval.formatting.format_content` to
        every hit.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        embeddings: Embeddings,
        *,
        config: Settings = settings,
        default_k: int | None = None,
        format_results: bool = True,
    ) -> None:
        self._store = store
        self._embeddings = embeddings
        self._config = config
        self.default_k = default_k or config.default_n_results
        self.format_results = format_results

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> QueryService:
        """Chroma + HuggingFace embeddings, as configured."""
        from corpus_rag.ingestion.embedder import get_embedding_function
        from corpus_rag.retrieval.chroma_store import ChromaVectorStore

        store = ChromaVectorStore(host=cfg.chroma_host, port=cfg.chroma_port, api_key=cfg.chroma_api_key)
        return cls(store, get_embedding_function(cfg.embedding_model), config=cfg)

    def search(self, collection: str, query: str | None, k: int | None = None) -> list[SearchResult]:
        """Run a semantic search against a logical collection.

        Parameters
        ----------
        collection:
            Logical collection name (``docs``, ``chat`` or ``code``).
        query:
            Natural-language query text.
        k:
            Number of results (defaults to ``self.default_k``).

        Raises
        ------
        ValidationError
            Empty query, oversize query, ``k < 1`` or unknown collection.
            Nothing has been sent upstream when this is raised.
        UpstreamError
            The embedding provider or the vector store failed.
        """
        if query is None or not query.strip():
            raise ValidationError("Missing 'query' parameter")
        if len(query) > MAX_QUERY_LENGTH:
            raise ValidationError(f"'query' must be at most {MAX_QUERY_LENGTH} characters")
        k = self.default_k if k is None else k
        if k < 1:
            raise ValidationError("'nResults' must be a positive integer")
        physical = self._config.collection_for(collection)

        try:
            vector = self._embeddings.embed_query(query)
        except Exception as exc:
            raise UpstreamError.wrap(exc, "embed") from exc
        try:
            hits = self._store.similarity_search(physical, vector, k=k)
        except Exception as exc:
            raise UpstreamError.wrap(exc, "search") from exc

        logger.info("search %s returned %d results for %r", physical, len(hits), query)
        results = [SearchResult(score=hit["score"], content=hit.get("content") or "") for hit in hits]
        if self.format_results:
            results = formatting.format_results(results)
        return results
