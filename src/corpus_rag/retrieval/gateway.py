"""HTTP client for a remote query gateway (``corpus_rag.serving.app``)."""

from __future__ import annotations

import logging

import requests

from corpus_rag.errors import RateLimitError, UpstreamError, ValidationError
from corpus_rag.retrieval.models import SearchResponse, SearchResult

logger = logging.getLogger(__name__)


class GatewayClient:
    """Same ``search(collection, query, k)`` contract as :class:`QueryService`.

    Gateway status codes are mapped back onto the error taxonomy: 400/404
    → :class:`ValidationError`, 429 → :class:`RateLimitError`, anything
    else → :class:`UpstreamError` carrying the status.
    """

    def __init__(self, base_url: str, *, timeout: float = 30.0, session: requests.Session | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def search(self, collection: str, query: str | None, k: int | None = None) -> list[SearchResult]:
        if query is None or not query.strip():
            raise ValidationError("Missing 'query' parameter")
        params: dict[str, str | int] = {"query": query}
        if k is not None:
            params["nResults"] = k

        url = f"{self.base_url}/{collection}"
        try:
            resp = self._session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise UpstreamError(f"gateway request failed: {exc}", operation="gateway") from exc

        if resp.status_code in (400, 404):
            raise ValidationError(_error_message(resp))
        if resp.status_code == 429:
            raise RateLimitError()
        if not resp.ok:
            raise UpstreamError(f"Error: {resp.status_code}", operation="gateway", status_code=resp.status_code)

        results = SearchResponse.model_validate(resp.json()).results
        logger.info("gateway %s returned %d results", collection, len(results))
        return results


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"Error: {resp.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    return str(error or f"Error: {resp.status_code}")
