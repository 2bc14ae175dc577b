"""Embedding provider wiring."""

from __future__ import annotations

from functools import lru_cache

from langchain_core.embeddings import Embeddings
from langchain_huggingface import HuggingFaceEmbeddings

from corpus_rag.config import settings


@lru_cache(maxsize=4)
def get_embedding_function(model_name: str | None = None) -> Embeddings:
    """Return the configured sentence-transformer embedding function.

    Cached per model so the weights are loaded once per process.
    """
    return HuggingFaceEmbeddings(model_name=model_name or settings.embedding_model)
