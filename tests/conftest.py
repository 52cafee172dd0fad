"""Shared test fixtures."""

import pytest
import pytest_asyncio

from dataset_search.db.connection import create_connection
from dataset_search.models.dataset import (
    DatasetCollection,
    DatasetPassage,
    LexicalHit,
    RerankHit,
    VectorHit,
)
from dataset_search.models.search import ScoredPassage, ScoreEntry, ScoreType
from dataset_search.search.fulltext_recall import segment_query
from dataset_search.search.protocols import EmbeddingResult, RecallBackends
from dataset_search.store.dataset_store import DatasetStore

TEAM = "team-1"
DIM = 8


def make_passage(
    passage_id: str,
    q: str | None = None,
    a: str = "",
    *,
    dataset_id: str = "ds-1",
    collection_id: str = "col-1",
    scores: list[tuple[ScoreType, float]] | None = None,
) -> ScoredPassage:
    """Build a ScoredPassage; score ranks are 0 unless the test cares."""
    return ScoredPassage(
        id=passage_id,
        q=q if q is not None else f"question {passage_id}",
        a=a,
        dataset_id=dataset_id,
        collection_id=collection_id,
        score=[ScoreEntry(type=t, value=v, rank=0) for t, v in scores or []],
    )


def _encode(text: str) -> list[float]:
    return [float(ord(c)) for c in text]


def _decode(vector: list[float]) -> str:
    return "".join(chr(int(v)) for v in vector)


class FakeEmbedder:
    """Embedder whose vector round-trips the query text.

    FakeDatasetBackend decodes the vector back into the query to look up
    canned hits. Token cost is the number of words in the query.
    """

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: list[tuple[str, str]] = []

    async def embed(self, text: str, *, model: str) -> EmbeddingResult:
        self.calls.append((text, model))
        if self.fail:
            raise RuntimeError("embedding service down")
        return EmbeddingResult(vector=_encode(text), tokens=len(text.split()))


class FakeDatasetBackend:
    """In-memory vector index, lexical index and document store with canned hits."""

    def __init__(self):
        self.collections: dict[str, DatasetCollection] = {}
        self.passages: dict[str, DatasetPassage] = {}
        self._vector_hits: dict[str, list[tuple[str, float]]] = {}
        self._lexical_hits: dict[str, list[tuple[str, float]]] = {}
        self.forbid_calls = 0
        self.vector_calls = 0
        self.lexical_calls: list[str] = []
        self.lexical_error: Exception | None = None

    def add_collection(self, collection_id: str, *, dataset_id: str = "ds-1", **kwargs) -> None:
        self.collections[collection_id] = DatasetCollection(
            id=collection_id,
            team_id=kwargs.pop("team_id", TEAM),
            dataset_id=dataset_id,
            name=kwargs.pop("name", f"Collection {collection_id}"),
            **kwargs,
        )

    def add_passage(
        self,
        passage_id: str,
        q: str | None = None,
        a: str = "",
        *,
        collection_id: str = "col-1",
        chunk_index: int = 0,
    ) -> None:
        collection = self.collections[collection_id]
        self.passages[passage_id] = DatasetPassage(
            id=passage_id,
            team_id=collection.team_id,
            dataset_id=collection.dataset_id,
            collection_id=collection_id,
            q=q if q is not None else f"question {passage_id}",
            a=a,
            chunk_index=chunk_index,
            indexes=[f"{passage_id}:0", f"{passage_id}:1"],
        )

    def set_vector_hits(self, query: str, hits: list[tuple[str, float]]) -> None:
        """Hits are (index_id, similarity); use '<passage>:<n>' index ids."""
        self._vector_hits[query] = hits

    def set_lexical_hits(self, query: str, hits: list[tuple[str, float]]) -> None:
        """Hits are (passage_id, lexical score)."""
        self._lexical_hits[segment_query(query)] = hits

    async def forbidden_collection_ids(self, team_id: str, dataset_ids: list[str]) -> set[str]:
        self.forbid_calls += 1
        return {
            c.id
            for c in self.collections.values()
            if c.forbid and c.team_id == team_id and c.dataset_id in dataset_ids
        }

    async def vector_search(
        self, vector, *, team_id, dataset_ids, limit, forbid_collection_ids
    ) -> list[VectorHit]:
        self.vector_calls += 1
        hits = []
        for index_id, score in self._vector_hits.get(_decode(vector), []):
            passage = self.passages[index_id.split(":")[0]]
            if passage.team_id != team_id or passage.dataset_id not in dataset_ids:
                continue
            if passage.collection_id in forbid_collection_ids:
                continue
            hits.append(
                VectorHit(index_id=index_id, collection_id=passage.collection_id, score=score)
            )
        return hits[:limit]

    async def lexical_search(
        self, segmented_query, *, team_id, dataset_id, limit
    ) -> list[LexicalHit]:
        self.lexical_calls.append(dataset_id)
        if self.lexical_error is not None:
            raise self.lexical_error
        hits = []
        for passage_id, score in self._lexical_hits.get(segmented_query, []):
            passage = self.passages[passage_id]
            if passage.team_id != team_id or passage.dataset_id != dataset_id:
                continue
            hits.append(
                LexicalHit(
                    id=passage.id,
                    dataset_id=passage.dataset_id,
                    collection_id=passage.collection_id,
                    q=passage.q,
                    a=passage.a,
                    chunk_index=passage.chunk_index,
                    score=score,
                )
            )
        hits.sort(key=lambda h: h.score, reverse=True)
        return hits[:limit]

    async def fetch_passages(self, *, team_id, dataset_ids, collection_ids, index_ids):
        wanted = set(index_ids)
        return [
            p
            for p in self.passages.values()
            if p.team_id == team_id
            and p.dataset_id in dataset_ids
            and p.collection_id in collection_ids
            and wanted.intersection(p.indexes)
        ]

    async def fetch_collections(self, collection_ids):
        return [self.collections[c] for c in collection_ids if c in self.collections]


class FakeReranker:
    """Controllable reranker: fixed scores, an exception, or an empty answer."""

    def __init__(self, scores: dict[str, float] | None = None, error: Exception | None = None):
        self.scores = scores or {}
        self.error = error
        self.calls: list[tuple[str, list[tuple[str, str]]]] = []
        self.extra_ids: list[str] = []

    async def rerank(self, query: str, documents: list[tuple[str, str]]) -> list[RerankHit]:
        self.calls.append((query, documents))
        if self.error is not None:
            raise self.error
        hits = [
            RerankHit(id=doc_id, score=self.scores[doc_id])
            for doc_id, _ in documents
            if doc_id in self.scores
        ]
        hits += [RerankHit(id=doc_id, score=1.0) for doc_id in self.extra_ids]
        hits.sort(key=lambda h: h.score, reverse=True)
        return hits

    async def close(self) -> None:
        pass


class FakeTokenCounter:
    """Counts words, unless a fixed per-text cost is configured."""

    def __init__(self, costs: dict[str, int] | None = None):
        self.costs = costs or {}

    def __call__(self, text: str) -> int:
        if text in self.costs:
            return self.costs[text]
        return len(text.split())


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def fake_backend():
    backend = FakeDatasetBackend()
    backend.add_collection("col-1", dataset_id="ds-1", file_id="file-1")
    backend.add_collection("col-2", dataset_id="ds-2", raw_link="https://example.com/doc")
    return backend


@pytest.fixture
def backends(fake_embedder, fake_backend):
    return RecallBackends(
        embedder=fake_embedder,
        vectors=fake_backend,
        lexical=fake_backend,
        documents=fake_backend,
    )


@pytest_asyncio.fixture
async def db():
    """In-memory database with full schema and sqlite-vec (when loadable)."""
    conn = await create_connection(":memory:", embedding_dim=DIM)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def store(db):
    """Dataset store backed by in-memory DB."""
    return DatasetStore(db)


@pytest.fixture
def vec_db(db):
    """The in-memory DB, skipping the test when sqlite-vec could not be loaded."""
    if not db.vec_enabled:
        pytest.skip("sqlite-vec extension not loadable")
    return db


async def insert_collection(
    db,
    collection_id: str,
    *,
    dataset_id: str = "ds-1",
    team_id: str = TEAM,
    name: str = "",
    file_id: str | None = None,
    forbid: bool = False,
) -> None:
    await db.execute(
        """INSERT INTO dataset_collections (id, team_id, dataset_id, name, file_id, forbid)
        VALUES (?, ?, ?, ?, ?, ?)""",
        (collection_id, team_id, dataset_id, name or collection_id, file_id, int(forbid)),
    )
    await db.commit()


async def insert_passage(
    db,
    passage_id: str,
    q: str,
    a: str = "",
    *,
    collection_id: str = "col-1",
    dataset_id: str = "ds-1",
    team_id: str = TEAM,
    chunk_index: int = 0,
    vectors: list[list[float]] | None = None,
) -> None:
    """Insert a passage plus one index fragment per vector (stored if sqlite-vec is loaded)."""
    await db.execute(
        """INSERT INTO dataset_data (id, team_id, dataset_id, collection_id, q, a, chunk_index)
        VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (passage_id, team_id, dataset_id, collection_id, q, a, chunk_index),
    )
    for n, vector in enumerate(vectors or []):
        index_id = f"{passage_id}:{n}"
        await db.execute(
            "INSERT INTO dataset_data_indexes (index_id, data_id) VALUES (?, ?)",
            (index_id, passage_id),
        )
        if db.vec_enabled:
            await db.vector_store(
                index_id,
                vector,
                team_id=team_id,
                dataset_id=dataset_id,
                collection_id=collection_id,
            )
    await db.commit()


def unit(*components: float) -> list[float]:
    """Pad to DIM and normalize."""
    vec = list(components) + [0.0] * (DIM - len(components))
    norm = sum(v * v for v in vec) ** 0.5
    return [v / norm for v in vec]
