"""Reranker protocol for pluggable cross-encoder backends."""

from typing import Protocol, runtime_checkable

from dataset_search.models.dataset import RerankHit


@runtime_checkable
class Reranker(Protocol):
    """Scores candidate documents against a query."""

    async def rerank(self, query: str, documents: list[tuple[str, str]]) -> list[RerankHit]:
        """Score ``(id, text)`` documents. Returns hits in the reranker's order.

        May raise or return an empty list; callers treat both as a soft failure.
        """
        ...

    async def close(self) -> None:
        """Release resources."""
        ...
