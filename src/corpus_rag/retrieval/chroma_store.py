"""Chroma implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
from typing import Any

import chromadb

from corpus_rag.config import settings
from corpus_rag.retrieval.base import VectorStoreBase
from corpus_rag.retrieval.models import IndexRecord

logger = logging.getLogger(__name__)


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store.

    Parameters
    ----------
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    api_key:
        Optional token forwarded as ``X-Chroma-Token``.
    distance_metric:
        Distance function for newly created collections (``cosine`` | ``l2`` | ``ip``).
    client:
        Pre-built Chroma client (e.g. ``chromadb.EphemeralClient()``); when
        given, *host*, *port* and *api_key* are ignored.
    """

    def __init__(
        self,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        api_key: str = settings.chroma_api_key,
        distance_metric: str = "l2",
        client: Any | None = None,
    ) -> None:
        self._host = host
        self._port = port
        self._api_key = api_key
        self._client = client
        self._distance_metric = distance_metric
        self._collections: dict[str, Any] = {}

    @property
    def client(self) -> Any:
        """The Chroma client, connected on first use."""
        if self._client is None:
            headers = {"X-Chroma-Token": self._api_key} if self._api_key else None
            self._client = chromadb.HttpClient(host=self._host, port=self._port, headers=headers)
        return self._client

    def _collection(self, name: str) -> Any:
        if name not in self._collections:
            self._collections[name] = self.client.get_or_create_collection(
                name=name,
                metadata={"hnsw:space": self._distance_metric},
            )
        return self._collections[name]

    # -- VectorStoreBase overrides --------------------------------------------

    def upsert(self, collection: str, records: list[IndexRecord]) -> None:
        if not records:
            return
        self._collection(collection).upsert(
            ids=[r.id for r in records],
            embeddings=[r.embedding for r in records],
            documents=[r.text for r in records],
            metadatas=[r.metadata or None for r in records],
        )
        logger.debug("Upserted %d records into %s", len(records), collection)

    def similarity_search(
        self,
        collection: str,
        query_embedding: list[float],
        *,
        k: int = 10,
    ) -> list[dict[str, Any]]:
        results = self._collection(collection).query(
            query_embeddings=[query_embedding],
            n_results=k,
            include=["documents", "metadatas", "distances"],
        )

        hits: list[dict[str, Any]] = []
        ids = (results.get("ids") or [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        for doc_id, content, meta, dist in zip(ids, docs, metas, distances):
            # Chroma returns distances; convert to a 0-1 similarity score.
            score = 1.0 / (1.0 + dist)
            hits.append(
                {
                    "id": doc_id,
                    "content": content or "",
                    "score": score,
                    "metadata": meta or {},
                }
            )
        return hits

    def health_check(self) -> bool:
        try:
            self.client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False
