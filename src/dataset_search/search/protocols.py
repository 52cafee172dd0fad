"""Contracts for the collaborators the search pipeline recalls from.

Each protocol names only what the pipeline needs. DatasetStore satisfies the
vector, lexical and document protocols; the embedding client and token counter
are separate.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from dataset_search.models.dataset import (
    DatasetCollection,
    DatasetPassage,
    LexicalHit,
    VectorHit,
)


@dataclass(frozen=True)
class EmbeddingResult:
    """A query vector and the tokens spent producing it."""

    vector: list[float]
    tokens: int


@runtime_checkable
class Embedder(Protocol):
    """Turns query text into a vector."""

    async def embed(self, text: str, *, model: str) -> EmbeddingResult:
        """Embed a single query. Raises on failure."""
        ...


@runtime_checkable
class VectorIndex(Protocol):
    """Nearest-neighbour search over indexed passage fragments."""

    async def vector_search(
        self,
        vector: list[float],
        *,
        team_id: str,
        dataset_ids: list[str],
        limit: int,
        forbid_collection_ids: frozenset[str],
    ) -> list[VectorHit]:
        """Return up to ``limit`` fragment hits, most similar first."""
        ...


@runtime_checkable
class LexicalIndex(Protocol):
    """Full-text search inside a single dataset."""

    async def lexical_search(
        self, segmented_query: str, *, team_id: str, dataset_id: str, limit: int
    ) -> list[LexicalHit]:
        """Return up to ``limit`` hits, highest lexical score first."""
        ...


@runtime_checkable
class DocumentStore(Protocol):
    """Passage text and collection metadata."""

    async def forbidden_collection_ids(self, team_id: str, dataset_ids: list[str]) -> set[str]:
        """IDs of collections excluded from recall."""
        ...

    async def fetch_passages(
        self,
        *,
        team_id: str,
        dataset_ids: list[str],
        collection_ids: list[str],
        index_ids: list[str],
    ) -> list[DatasetPassage]:
        """Passages owning any of ``index_ids`` within the given scope."""
        ...

    async def fetch_collections(self, collection_ids: list[str]) -> list[DatasetCollection]:
        """Collections by ID."""
        ...


@runtime_checkable
class TokenCounter(Protocol):
    """Counts model tokens in a piece of text."""

    def __call__(self, text: str) -> int:
        """Token length of ``text``."""
        ...


@dataclass(frozen=True)
class RecallBackends:
    """Everything the recall stages talk to."""

    embedder: Embedder
    vectors: VectorIndex
    lexical: LexicalIndex
    documents: DocumentStore
