"""Search-related models."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class SearchMode(StrEnum):
    """Which recall sources a search uses."""

    EMBEDDING = "embedding"
    FULL_TEXT = "fullText"
    MIXED = "mixed"

    @classmethod
    def coerce(cls, value: Any) -> "SearchMode":
        """Parse a mode, falling back to embedding search when unrecognized."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.EMBEDDING


class ScoreType(StrEnum):
    """Source of a score attached to a passage."""

    EMBEDDING = "embedding"
    FULL_TEXT = "fullText"
    RERANK = "reRank"


class ScoreEntry(BaseModel):
    """One source's score for a passage, with the passage's rank in that source."""

    type: ScoreType
    value: float
    rank: int


class ScoredPassage(BaseModel):
    """A recalled passage with every score that contributed to its ranking."""

    id: str
    q: str
    a: str = ""
    chunk_index: int = 0
    dataset_id: str
    collection_id: str
    source_name: str = ""
    source_id: str | None = None
    score: list[ScoreEntry] = Field(default_factory=list)

    @property
    def text(self) -> str:
        """Question and answer joined, as counted against the token budget."""
        return f"{self.q}{self.a}"

    def best_score(self, score_type: ScoreType) -> float | None:
        """Highest value among entries of the given type, or None if absent."""
        values = [s.value for s in self.score if s.type == score_type]
        return max(values) if values else None


class RecallLimits(BaseModel):
    """Per-source recall quotas."""

    embedding_limit: int
    full_text_limit: int


class SearchRequest(BaseModel):
    """Parameters for one dataset search."""

    team_id: str
    model: str
    similarity: float = Field(default=0.0, ge=0.0, le=1.0)
    limit: int = Field(ge=0, description="Token budget for the returned passages")
    dataset_ids: list[str] = Field(default_factory=list)
    search_mode: SearchMode = SearchMode.EMBEDDING
    using_rerank: bool = False
    rerank_query: str = ""
    queries: list[str] = Field(min_length=1)

    @field_validator("search_mode", mode="before")
    @classmethod
    def _fallback_search_mode(cls, value: Any) -> Any:
        """Unknown modes silently become embedding search."""
        return SearchMode.coerce(value)

    @field_validator("dataset_ids")
    @classmethod
    def _unique_dataset_ids(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))


class SearchResponse(BaseModel):
    """Final ranked passages plus diagnostics about how they were produced."""

    passages: list[ScoredPassage]
    tokens: int
    search_mode: SearchMode
    limit: int
    similarity: float
    using_rerank: bool
    using_similarity_filter: bool
    rerank_degraded_reason: str | None = None
