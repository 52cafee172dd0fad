"""HTTP rerank client for Cohere/Jina/TEI-style ``/rerank`` endpoints."""

import logging

import httpx

from dataset_search.config import (
    get_rerank_api_key,
    get_rerank_model,
    get_rerank_timeout,
    get_rerank_url,
)
from dataset_search.models.dataset import RerankHit

logger = logging.getLogger(__name__)


class HttpRerankClient:
    """Reranks documents via a JSON rerank endpoint.

    Request: ``{"model", "query", "documents": [text, ...]}``.
    Response: ``{"results": [{"index": i, "relevance_score": s}, ...]}`` ordered
    best first. Errors are raised to the caller.
    """

    def __init__(
        self,
        url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize with an endpoint URL (defaults to DS_RERANK_URL) and optional client."""
        resolved = url or get_rerank_url()
        if resolved is None:
            raise ValueError("No rerank URL configured (set DS_RERANK_URL)")
        self.url = resolved
        self._http = http_client

    async def rerank(self, query: str, documents: list[tuple[str, str]]) -> list[RerankHit]:
        """Score documents against the query, best first."""
        if not documents:
            return []
        headers: dict[str, str] = {}
        api_key = get_rerank_api_key()
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        client = self._get_client()
        resp = await client.post(
            self.url,
            json={
                "model": get_rerank_model(),
                "query": query,
                "documents": [text for _, text in documents],
            },
            headers=headers,
            timeout=get_rerank_timeout(),
        )
        resp.raise_for_status()
        data = resp.json()

        hits: list[RerankHit] = []
        for item in data.get("results", []):
            index = item["index"]
            if not 0 <= index < len(documents):
                raise ValueError(f"Rerank result index {index} out of range")
            hits.append(RerankHit(id=documents[index][0], score=item.get("relevance_score", 0.0)))
        return hits

    def _get_client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient()
        return self._http

    async def close(self) -> None:
        """Close the HTTP client if open."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None
