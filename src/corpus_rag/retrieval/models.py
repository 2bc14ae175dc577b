"""Domain models for indexed records and search results."""

from __future__ import annotations

import hashlib
import json
from typing import Any

from pydantic import BaseModel, Field

from corpus_rag.ingestion.models import Chunk

MetadataValue = str | int | float | bool


def flatten_metadata(metadata: dict[str, Any]) -> dict[str, MetadataValue]:
    """Coerce *metadata* into the flat scalar mapping vector stores accept.

    ``None`` values are dropped, lists of scalars are joined with ``", "``
    and anything else (dicts, dates, nested lists) is JSON-encoded.
    """
    flat: dict[str, MetadataValue] = {}
    for key, value in metadata.items():
        if value is None:
            continue
        if isinstance(value, (str, int, float, bool)):
            flat[key] = value
        elif isinstance(value, (list, tuple)) and all(isinstance(v, (str, int, float, bool)) for v in value):
            flat[key] = ", ".join(str(v) for v in value)
        else:
            flat[key] = json.dumps(value, default=str, sort_keys=True)
    return flat


def record_id(chunk: Chunk) -> str:
    """Deterministic id so re-ingesting identical content overwrites it."""
    meta = chunk.metadata
    key = "\x1f".join(
        str(part) for part in (meta["source"], meta.get("day", ""), meta["chunkIndex"], chunk.text)
    )
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:32]


class IndexRecord(BaseModel):
    """A chunk paired with its embedding, as handed to the vector store."""

    id: str
    text: str
    embedding: list[float]
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)

    @classmethod
    def from_chunk(cls, chunk: Chunk, embedding: list[float]) -> IndexRecord:
        return cls(
            id=record_id(chunk),
            text=chunk.text,
            embedding=list(embedding),
            metadata=flatten_metadata(chunk.metadata),
        )


class SearchResult(BaseModel):
    """One ranked hit returned to a caller.

    ``score`` is whatever similarity measure the store reports; it is
    only comparable between results of the same query.
    """

    score: float
    content: str


class SearchResponse(BaseModel):
    """Payload of ``GET /<collection>``."""

    results: list[SearchResult] = Field(default_factory=list)
