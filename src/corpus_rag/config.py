"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

from corpus_rag.errors import UnknownCollectionError


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Embedding
    embedding_model: str = Field(
        default="sentence-transformers/all-MiniLM-L6-v2",
        description="HuggingFace model id used for text → embedding conversion",
    )

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_api_key: str = Field(default="", description="Passed through to the Chroma server when set")

    # Collections (one per corpus)
    docs_collection: str = "docs_documents"
    chat_collection: str = "chat_messages"
    code_collection: str = "code_corpus"

    # Corpus locations
    docs_path: str = "data/docs"
    chat_path: str = "data/chat"
    code_path: str = "data/code"

    # Chunking
    chunk_size: int = 1000
    chunk_overlap: int = 200
    code_chunk_size: int = 500
    code_chunk_overlap: int = 100
    code_max_file_size: int = Field(default=500_000, description="Source files above this size (bytes) are skipped")
    code_ignored_folders: list[str] = Field(
        default=["node_modules", "dist", "build", ".git", "coverage", "__pycache__", ".venv"],
    )

    # Indexing
    index_batch_size: int = 50

    # Query serving
    rate_limit_window_ms: int = 60_000
    rate_limit_max_requests: int = 10
    default_n_results: int = 10

    # Tool surface
    gateway_url: str = Field(
        default="",
        description=(
            "Base URL of a running query gateway, e.g. 'http://localhost:3000'. "
            "Leave empty to query the vector store in-process."
        ),
    )
    gateway_timeout: float = 30.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def collections(self) -> dict[str, str]:
        """Logical collection name → physical collection name."""
        return {
            "docs": self.docs_collection,
            "chat": self.chat_collection,
            "code": self.code_collection,
        }

    def collection_for(self, logical_name: str) -> str:
        """Resolve a logical collection name (``docs``, ``chat``, ``code``)."""
        try:
            return self.collections[logical_name]
        except KeyError:
            raise UnknownCollectionError(logical_name, sorted(self.collections)) from None


# Singleton — import `settings` wherever needed.
settings = Settings()
