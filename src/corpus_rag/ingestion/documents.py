"""Chunk assembly — normalised documents → :class:`Chunk` objects."""

from __future__ import annotations

from datetime import datetime, timezone

from corpus_rag.ingestion.chunker import separators_for, split_text
from corpus_rag.ingestion.models import Chunk, CorpusType, NormalizedDocument, RawFile
from corpus_rag.ingestion.normalizers import Normalizer


def build_chunks(
    raw_file: RawFile,
    documents: list[NormalizedDocument],
    normalizer: Normalizer,
    *,
    chunk_size: int,
    chunk_overlap: int,
    corpus_type: CorpusType | None = None,
) -> list[Chunk]:
    """Split every document of *raw_file* and attach chunk metadata.

    ``chunkIndex`` restarts at zero for each document, so a chat export
    yields one contiguous ``0..n-1`` sequence per conversation day.

    Metadata precedence (later wins): document metadata, then the required
    keys (``source``, ``fileName``, ``chunkIndex``, ``type``,
    ``createdAt``), then whatever the normalizer derives from the chunk
    text itself.
    """
    corpus_type = corpus_type or normalizer.corpus_type
    separators = separators_for(corpus_type)
    created_at = datetime.now(timezone.utc).isoformat()

    chunks: list[Chunk] = []
    for document in documents:
        pieces = split_text(document.text, chunk_size, chunk_overlap, separators)
        for idx, piece in enumerate(pieces):
            metadata = {
                **document.metadata,
                "source": raw_file.source,
                "fileName": raw_file.file_name,
                "chunkIndex": idx,
                "type": document.doc_type or corpus_type.value,
                "createdAt": created_at,
                **normalizer.chunk_metadata(raw_file, piece),
            }
            chunks.append(Chunk(text=piece, metadata=metadata))
    return chunks
