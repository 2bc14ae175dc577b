"""Domain models flowing through the ingestion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

REQUIRED_METADATA_KEYS = frozenset({"source", "fileName", "chunkIndex", "type", "createdAt"})


class CorpusType(str, Enum):
    """The closed set of corpus kinds the ingestion entry point accepts."""

    PROSE = "prose"
    CHAT = "chat"
    CODE = "code"


@dataclass
class RawFile:
    """A corpus file as read from disk."""

    path: Path
    content: str

    @property
    def source(self) -> str:
        return str(self.path)

    @property
    def file_name(self) -> str:
        return self.path.name


@dataclass
class NormalizedDocument:
    """Canonical ``(text, metadata)`` shape produced by a normalizer.

    One raw file may yield several documents (e.g. one per conversation
    day); chunk indices restart at zero for each of them.
    """

    text: str
    metadata: dict[str, Any] = field(default_factory=dict)
    doc_type: str | None = None


class Chunk(BaseModel):
    """A bounded slice of a document's normalised text, ready to embed.

    Attributes
    ----------
    text:
        Non-empty chunk text.
    metadata:
        Always contains ``source``, ``fileName``, ``chunkIndex``, ``type``
        and ``createdAt``, plus corpus-specific keys.
    """

    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("text")
    @classmethod
    def _text_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("chunk text must not be empty")
        return value

    @field_validator("metadata")
    @classmethod
    def _required_keys(cls, value: dict[str, Any]) -> dict[str, Any]:
        missing = REQUIRED_METADATA_KEYS - value.keys()
        if missing:
            raise ValueError(f"chunk metadata missing required keys: {sorted(missing)}")
        return value

    @property
    def chunk_index(self) -> int:
        return self.metadata["chunkIndex"]

    @property
    def source(self) -> str:
        return self.metadata["source"]


class IngestionReport(BaseModel):
    """Final tally of one ingestion run."""

    corpus_type: CorpusType
    collection: str
    files_processed: int = 0
    files_failed: int = 0
    files_skipped: int = 0
    chunks_created: int = 0
    records_indexed: int = 0

    def summary(self) -> str:
        return (
            f"{self.corpus_type.value}: processed {self.files_processed} files "
            f"({self.files_failed} failed, {self.files_skipped} skipped), "
            f"created {self.chunks_created} chunks, indexed {self.records_indexed} "
            f"→ collection '{self.collection}'"
        )
