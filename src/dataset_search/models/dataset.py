"""Stored dataset records and raw collaborator hits."""

from pydantic import BaseModel, Field


class DatasetCollection(BaseModel):
    """A logical document group inside a dataset."""

    id: str
    team_id: str
    dataset_id: str
    name: str = ""
    file_id: str | None = None
    raw_link: str | None = None
    external_file_id: str | None = None
    external_file_url: str | None = None
    forbid: bool = False

    @property
    def source_id(self) -> str | None:
        """Where the collection came from: file, link or external reference."""
        return self.file_id or self.raw_link or self.external_file_id or self.external_file_url


class DatasetPassage(BaseModel):
    """A stored question/answer chunk and the vector fragments indexing it."""

    id: str
    team_id: str
    dataset_id: str
    collection_id: str
    q: str
    a: str = ""
    chunk_index: int = 0
    indexes: list[str] = Field(default_factory=list)


class VectorHit(BaseModel):
    """A vector index match on one indexed fragment of a passage."""

    index_id: str
    collection_id: str
    score: float


class LexicalHit(BaseModel):
    """A full-text match, projected to the passage fields."""

    id: str
    dataset_id: str
    collection_id: str
    q: str
    a: str = ""
    chunk_index: int = 0
    score: float


class RerankHit(BaseModel):
    """A reranker verdict for one candidate."""

    id: str
    score: float
