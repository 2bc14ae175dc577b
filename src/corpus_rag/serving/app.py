"""FastAPI application exposing the query service as a REST gateway.

Routes
------
- ``GET /health`` — liveness probe plus vector-store reachability (not rate
  limited).
- ``GET /{collection}?query=<text>&nResults=<int>`` — semantic search over
  the ``docs``, ``chat`` or ``code`` collection; returns ``{"results": [...]}``.

Errors come back as ``{"error": ...}`` JSON: 400 for invalid parameters,
404 for an unknown collection, 429 when rate limited and 500 when the
embedding provider or vector store fails.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from corpus_rag.config import settings
from corpus_rag.errors import RateLimitError, UnknownCollectionError, UpstreamError, ValidationError
from corpus_rag.retrieval.base import VectorStoreBase
from corpus_rag.retrieval.models import SearchResponse
from corpus_rag.retrieval.service import QueryService
from corpus_rag.serving.ratelimit import RateLimiter

logger = logging.getLogger(__name__)


# ── Dependencies ──────────────────────────────────────────────────────
@lru_cache(maxsize=1)
def get_vector_store() -> VectorStoreBase:
    """Process-wide vector-store client."""
    from corpus_rag.retrieval.chroma_store import ChromaVectorStore

    return ChromaVectorStore(host=settings.chroma_host, port=settings.chroma_port, api_key=settings.chroma_api_key)


@lru_cache(maxsize=1)
def get_query_service() -> QueryService:
    """Process-wide query service, built lazily on first request."""
    from corpus_rag.ingestion.embedder import get_embedding_function

    return QueryService(get_vector_store(), get_embedding_function(settings.embedding_model))


def enforce_rate_limit(request: Request) -> None:
    """Count the request against the app's :class:`RateLimiter`."""
    request.app.state.rate_limiter.acquire()


def require_query(query: str | None = Query(default=None)) -> None:
    """Reject a missing query before the service (and its clients) is touched."""
    if query is None or not query.strip():
        raise ValidationError("Missing 'query' parameter")


# ── Error mapping ─────────────────────────────────────────────────────
def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _bad_params(_: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request parameters", "detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(UnknownCollectionError)
    async def _unknown_collection(_: Request, exc: UnknownCollectionError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": exc.message})

    @app.exception_handler(ValidationError)
    async def _invalid(_: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": exc.message})

    @app.exception_handler(RateLimitError)
    async def _throttled(_: Request, exc: RateLimitError) -> JSONResponse:
        headers = {"Retry-After": str(int(exc.retry_after + 0.999))} if exc.retry_after is not None else None
        return JSONResponse(status_code=429, content={"error": "Rate limit exceeded"}, headers=headers)

    @app.exception_handler(UpstreamError)
    async def _upstream(_: Request, exc: UpstreamError) -> JSONResponse:
        logger.error("Upstream failure during %s: %s", exc.operation, exc.message)
        content: dict[str, object] = {"error": "Internal server error", "operation": exc.operation}
        if exc.status_code is not None:
            content["upstreamStatus"] = exc.status_code
        return JSONResponse(status_code=500, content=content)


# ── App factory ───────────────────────────────────────────────────────
def create_app(rate_limiter: RateLimiter | None = None) -> FastAPI:
    """Build the gateway app with its own rate limiter."""
    # Interactive docs live under /_docs so that /docs stays the docs collection.
    app = FastAPI(
        title="Corpus RAG Gateway",
        version="0.1.0",
        description="Semantic search over documentation, chat and source-code collections.",
        docs_url="/_docs",
        redoc_url=None,
        openapi_url="/_openapi.json",
    )
    app.state.rate_limiter = rate_limiter or RateLimiter.from_settings()
    _register_error_handlers(app)

    @app.get("/health")
    def health(store: VectorStoreBase = Depends(get_vector_store)) -> dict[str, str]:
        """Liveness probe; also reports whether the vector store answers."""
        return {"status": "ok", "vectorStore": "ok" if store.health_check() else "unavailable"}

    @app.get(
        "/{collection}",
        response_model=SearchResponse,
        dependencies=[Depends(enforce_rate_limit), Depends(require_query)],
    )
    def search(
        collection: str,
        query: str | None = Query(default=None),
        n_results: int | None = Query(default=None, alias="nResults"),
        service: QueryService = Depends(get_query_service),
    ) -> SearchResponse:
        """Search one collection and return formatted results."""
        return SearchResponse(results=service.search(collection, query, n_results))

    return app


app = create_app()
