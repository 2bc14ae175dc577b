"""LangChain tool definitions for agent / LLM clients.

Three search tools, one per corpus: chat archive, documentation and
source code.  Each takes ``query`` and ``n_results`` and returns plain
text (``SIMILARITY: <score> <content>`` entries separated by blank
lines) or, on failure, a JSON error payload
``{"error": {"type": ..., "message": ...}}``.  The tools never raise.

Backend selection
-----------------
When ``settings.gateway_url`` is set the tools query a running HTTP
gateway through :class:`~corpus_rag.retrieval.gateway.GatewayClient`;
otherwise they use an in-process
:class:`~corpus_rag.retrieval.service.QueryService`, throttled by a
process-wide :class:`~corpus_rag.serving.ratelimit.RateLimiter` with the
same limits as the gateway (which throttles gateway calls itself).  Tests
swap the backend and limiter with :func:`set_searcher`.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

from langchain_core.tools import tool

from corpus_rag.config import settings
from corpus_rag.errors import CorpusRagError
from corpus_rag.retrieval.formatting import render_results
from corpus_rag.retrieval.models import SearchResult
from corpus_rag.serving.ratelimit import RateLimiter

logger = logging.getLogger(__name__)

DEFAULT_N_RESULTS = 10
MAX_N_RESULTS = 50


class Searcher(Protocol):
    def search(self, collection: str, query: str | None, k: int | None = None) -> list[SearchResult]: ...


_searcher: Searcher | None = None
_rate_limiter: RateLimiter | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def get_searcher() -> Searcher:
    """Lazy-build the backend to avoid import-time side-effects."""
    global _searcher, _rate_limiter
    if _searcher is None:
        if settings.gateway_url:
            from corpus_rag.retrieval.gateway import GatewayClient

            _searcher = GatewayClient(settings.gateway_url, timeout=settings.gateway_timeout)
            _rate_limiter = None
        else:
            from corpus_rag.retrieval.service import QueryService

            _searcher = QueryService.from_settings()
            _rate_limiter = RateLimiter.from_settings()
    return _searcher


def set_searcher(searcher: Searcher | None, rate_limiter: RateLimiter | None = None) -> None:
    """Replace (or with ``None`` reset) the backend used by the tools.

    *rate_limiter*, when given, throttles every tool call made through
    *searcher*; ``None`` leaves the calls unthrottled.
    """
    global _searcher, _rate_limiter
    _searcher = searcher
    _rate_limiter = rate_limiter


def run_search(tool_name: str, collection: str, query: str, n_results: int = DEFAULT_N_RESULTS) -> str:
    """Shared body of the search tools; also used by the MCP server."""
    try:
        k = max(1, min(int(n_results), MAX_N_RESULTS))
        searcher = get_searcher()
        if _rate_limiter is not None:
            _rate_limiter.acquire()
        results = searcher.search(collection, query, k)
    except CorpusRagError as exc:
        logger.error("Error in %s tool: %s", tool_name, exc)
        return json.dumps(exc.to_payload())
    except Exception as exc:
        logger.exception("Error in %s tool", tool_name)
        message = f"Error executing {tool_name}: {exc}"
        return json.dumps({"error": {"type": type(exc).__name__, "message": message}})
    logger.info("%s returned %d results for %r", tool_name, len(results), query)
    return render_results(results)


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@tool
def search_chat(query: str, n_results: int = DEFAULT_N_RESULTS) -> str:
    """Search the chat archive for messages related to the query.

    Chat discussions are not an authoritative source, but they often
    answer questions the documentation and code do not cover.

    Parameters
    ----------
    query:
        The search query for chat messages.
    n_results:
        Number of results to return (default 10).
    """
    return run_search("search_chat", "chat", query, n_results)


@tool
def search_documentation(query: str, n_results: int = DEFAULT_N_RESULTS) -> str:
    """Search the documentation collection for passages related to the query.

    Use this tool for questions that the documentation is likely to cover.

    Parameters
    ----------
    query:
        The search query for documentation.
    n_results:
        Number of results to return (default 10).
    """
    return run_search("search_documentation", "docs", query, n_results)


@tool
def search_code(query: str, n_results: int = DEFAULT_N_RESULTS) -> str:
    """Search the source-code corpus for snippets related to the query.

    Use this tool to find code examples, functions or classes.

    Parameters
    ----------
    query:
        The search query for the codebase.
    n_results:
        Number of results to return (default 10).
    """
    return run_search("search_code", "code", query, n_results)


# ---------------------------------------------------------------------------
# Tool registry — used by the MCP server to expose the same tools.
# ---------------------------------------------------------------------------

TOOL_REGISTRY: dict[str, Any] = {
    "search_chat": search_chat,
    "search_documentation": search_documentation,
    "search_code": search_code,
}
"""Mapping of tool name → tool callable."""

TOOL_COLLECTIONS: dict[str, str] = {
    "search_chat": "chat",
    "search_documentation": "docs",
    "search_code": "code",
}
