"""Indexing pipeline — batch, embed and upsert chunks."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from corpus_rag.config import settings
from corpus_rag.errors import UpstreamError
from corpus_rag.retrieval.models import IndexRecord

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

    from corpus_rag.ingestion.models import Chunk
    from corpus_rag.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)


class IndexingPipeline:
    """Embed chunks and write them to a vector-store collection.

    Batches run strictly one after another; the first failing batch
    aborts the run with :class:`~corpus_rag.errors.UpstreamError` and the
    remaining batches are not attempted.

    Parameters
    ----------
    store:
        Vector-store backend receiving the records.
    embeddings:
        LangChain embeddings implementation (``embed_documents``).
    batch_size:
        Default number of chunks per embed + upsert round-trip.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        embeddings: Embeddings,
        *,
        batch_size: int = settings.index_batch_size,
    ) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self._store = store
        self._embeddings = embeddings
        self.batch_size = batch_size

    def index(self, chunks: Sequence[Chunk], collection: str, batch_size: int | None = None) -> int:
        """Embed and upsert *chunks* into *collection*.

        Returns
        -------
        int
            Number of records written (``0`` for empty input).
        """
        if not chunks:
            return 0
        size = batch_size or self.batch_size
        written = 0
        total_batches = (len(chunks) + size - 1) // size

        for batch_no, start in enumerate(range(0, len(chunks), size), 1):
            batch = chunks[start:start + size]
            try:
                vectors = self._embeddings.embed_documents([c.text for c in batch])
            except Exception as exc:
                raise UpstreamError.wrap(exc, "embed") from exc
            if len(vectors) != len(batch):
                raise UpstreamError(
                    f"embed returned {len(vectors)} vectors for {len(batch)} texts",
                    operation="embed",
                )

            records = [IndexRecord.from_chunk(c, v) for c, v in zip(batch, vectors)]
            try:
                self._store.upsert(collection, records)
            except Exception as exc:
                raise UpstreamError.wrap(exc, "upsert") from exc

            written += len(records)
            logger.info(
                "  upserted batch %d/%d (%d-%d) → %s",
                batch_no,
                total_batches,
                start,
                start + len(batch),
                collection,
            )
        return written
