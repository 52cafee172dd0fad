"""Ollama embedding client for query vectors."""

import logging

import httpx

from dataset_search.config import get_ollama_timeout, get_ollama_url
from dataset_search.search.protocols import EmbeddingResult

logger = logging.getLogger(__name__)


class OllamaEmbeddingClient:
    """Generates query embeddings via Ollama's /api/embed endpoint.

    Failures propagate: a search cannot proceed without its query vector.
    """

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        """Initialize with an optional HTTP client."""
        self._http = http_client

    async def is_available(self) -> bool:
        """Check if Ollama is reachable."""
        try:
            client = self._get_client()
            resp = await client.get(f"{get_ollama_url()}/api/tags", timeout=get_ollama_timeout())
            resp.raise_for_status()
        except httpx.HTTPError:
            logger.warning("Ollama not available, embedding recall will fail")
            return False
        return True

    async def embed(self, text: str, *, model: str) -> EmbeddingResult:
        """Embed a query. Returns the vector and the prompt tokens Ollama evaluated."""
        client = self._get_client()
        resp = await client.post(
            f"{get_ollama_url()}/api/embed",
            json={"model": model, "input": text},
            timeout=get_ollama_timeout(),
        )
        resp.raise_for_status()
        data = resp.json()
        # Ollama /api/embed returns {"embeddings": [[...]], "prompt_eval_count": N}
        embeddings = data.get("embeddings") or []
        if not embeddings:
            raise ValueError(f"Ollama returned no embedding for model {model}")
        return EmbeddingResult(vector=embeddings[0], tokens=int(data.get("prompt_eval_count", 0)))

    def _get_client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient()
        return self._http

    async def close(self) -> None:
        """Close the HTTP client if open."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None
