"""Error taxonomy shared by the ingestion and query paths.

- :class:`ValidationError` — bad request parameters, raised before any
  external call is made.
- :class:`NormalizationError` — a single corpus file could not be
  normalised; ingestion skips the file and keeps going.
- :class:`UpstreamError` — the embedding provider or the vector store
  failed; fatal for the current ingestion run or query.
- :class:`RateLimitError` — the request allowance for the current window is
  exhausted.
"""

from __future__ import annotations


class CorpusRagError(Exception):
    """Base class for every error raised by ``corpus_rag``."""

    error_type = "Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict[str, dict[str, str]]:
        """Structured representation used by the HTTP and tool surfaces."""
        return {"error": {"type": self.error_type, "message": self.message}}


class ValidationError(CorpusRagError):
    """A request parameter is missing or invalid."""

    error_type = "ValidationError"


class UnknownCollectionError(ValidationError):
    """The logical collection name does not map to a configured collection."""

    def __init__(self, name: str, known: list[str]) -> None:
        super().__init__(f"Unknown collection {name!r}; expected one of {known}")
        self.name = name


class NormalizationError(CorpusRagError):
    """A corpus file is malformed and cannot be normalised."""

    error_type = "NormalizationError"

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path


class UpstreamError(CorpusRagError):
    """The embedding provider or vector store call failed.

    Parameters
    ----------
    message:
        Human-readable description of the failure.
    operation:
        Which upstream call failed (``"embed"``, ``"upsert"``, ``"search"``, …).
    status_code:
        HTTP status reported by the upstream service, when there was one.
    """

    error_type = "UpstreamError"

    def __init__(self, message: str, *, operation: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code

    @classmethod
    def wrap(cls, exc: Exception, operation: str) -> UpstreamError:
        """Wrap *exc*, keeping whatever status code the client library exposed."""
        status = getattr(exc, "status_code", None)
        if status is None:
            response = getattr(exc, "response", None)
            status = getattr(response, "status_code", None)
        return cls(f"{operation} failed: {exc}", operation=operation, status_code=status)


class RateLimitError(CorpusRagError):
    """Too many requests in the current window."""

    error_type = "RateLimitError"

    def __init__(self, message: str = "Rate limit exceeded", retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after
