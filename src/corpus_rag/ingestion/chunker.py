"""Text chunking strategies."""

from __future__ import annotations

from langchain_text_splitters import RecursiveCharacterTextSplitter

from corpus_rag.ingestion.models import CorpusType

# Paragraph, line, sentence, clause, space, character.
PROSE_SEPARATORS: list[str] = ["\n\n", "\n", ". ", ", ", " ", ""]

# Blank lines usually separate functions / classes in source files.
CODE_SEPARATORS: list[str] = [
    "\n\n",  # blank line
    "\n",  # line
    ". ",  # sentence (comments, docstrings)
    ", ",  # clause / argument list
    " ",
    "",  # character-level splitting as a last resort
]


def separators_for(corpus_type: CorpusType) -> list[str]:
    """Return the separator priority list used for *corpus_type*."""
    if corpus_type is CorpusType.CODE:
        return list(CODE_SEPARATORS)
    return list(PROSE_SEPARATORS)


def build_splitter(
    chunk_size: int,
    chunk_overlap: int,
    separators: list[str] | None = None,
) -> RecursiveCharacterTextSplitter:
    """Create a recursive splitter after validating the size parameters."""
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if chunk_overlap < 0:
        raise ValueError(f"chunk_overlap must be >= 0, got {chunk_overlap}")
    if chunk_overlap > chunk_size:
        raise ValueError(f"chunk_overlap ({chunk_overlap}) must be <= chunk_size ({chunk_size})")
    return RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        length_function=len,
        separators=separators if separators is not None else list(PROSE_SEPARATORS),
    )


def split_text(
    text: str,
    chunk_size: int,
    chunk_overlap: int,
    separators: list[str] | None = None,
) -> list[str]:
    """Split *text* into overlapping chunks of at most *chunk_size* characters.

    Parameters
    ----------
    text:
        Normalised document text.
    chunk_size:
        Maximum number of characters per chunk.
    chunk_overlap:
        Number of trailing characters of a chunk repeated at the start of
        the next one.
    separators:
        Split boundaries in priority order.  The last entry should be the
        empty string so that unbroken runs can still be split per character.

    Returns
    -------
    list[str]
        Non-empty chunks; an empty or whitespace-only *text* yields ``[]``.
    """
    splitter = build_splitter(chunk_size, chunk_overlap, separators)
    if not text.strip():
        return []
    return [chunk for chunk in splitter.split_text(text) if chunk.strip()]
