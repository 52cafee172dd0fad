"""SQLite-backed document store, lexical index and vector index."""

import asyncio
import logging

from dataset_search.db.backend import Database
from dataset_search.db.queries import (
    get_collections,
    get_forbidden_collection_ids,
    get_passages_by_index_ids,
)
from dataset_search.models.dataset import (
    DatasetCollection,
    DatasetPassage,
    LexicalHit,
    VectorHit,
)

logger = logging.getLogger(__name__)

# sqlite-vec rejects larger k
_MAX_KNN = 4096


class DatasetStore:
    """Read access to dataset passages, collections and their search indexes."""

    def __init__(self, db: Database):
        """Initialize with a database connection."""
        self.db = db

    async def forbidden_collection_ids(self, team_id: str, dataset_ids: list[str]) -> set[str]:
        """IDs of collections flagged forbidden for the team's datasets."""
        return await get_forbidden_collection_ids(self.db, team_id, dataset_ids)

    async def fetch_passages(
        self,
        *,
        team_id: str,
        dataset_ids: list[str],
        collection_ids: list[str],
        index_ids: list[str],
    ) -> list[DatasetPassage]:
        """Passages owning any of the index fragments, within the given scope."""
        return await get_passages_by_index_ids(
            self.db, team_id, dataset_ids, collection_ids, index_ids
        )

    async def fetch_collections(self, collection_ids: list[str]) -> list[DatasetCollection]:
        """Collections by ID."""
        return await get_collections(self.db, collection_ids)

    async def lexical_search(
        self, segmented_query: str, *, team_id: str, dataset_id: str, limit: int
    ) -> list[LexicalHit]:
        """FTS5 search in one dataset, highest score first.

        BM25 is negated so that higher means better, like the other score sources.
        """
        rows = await self.db.fts_search(
            segmented_query, team_id=team_id, dataset_id=dataset_id, limit=limit
        )
        return [
            LexicalHit(
                id=row["id"],
                dataset_id=row["dataset_id"],
                collection_id=row["collection_id"],
                q=row["q"],
                a=row["a"],
                chunk_index=row["chunk_index"],
                score=-row["score"],
            )
            for row in rows
        ]

    async def vector_search(
        self,
        vector: list[float],
        *,
        team_id: str,
        dataset_ids: list[str],
        limit: int,
        forbid_collection_ids: frozenset[str],
    ) -> list[VectorHit]:
        """Cosine KNN over index fragments in the team's datasets, most similar first.

        Similarity is ``1 - distance``. Fragments of forbidden collections are dropped.
        """
        if limit <= 0 or not dataset_ids:
            return []
        per_dataset = await asyncio.gather(
            *(
                self._dataset_neighbours(
                    vector, team_id, dataset_id, limit, forbid_collection_ids
                )
                for dataset_id in dataset_ids
            )
        )
        hits = [hit for dataset_hits in per_dataset for hit in dataset_hits]
        hits.sort(key=lambda hit: hit.score, reverse=True)
        return hits[:limit]

    async def _dataset_neighbours(
        self,
        vector: list[float],
        team_id: str,
        dataset_id: str,
        limit: int,
        forbid_collection_ids: frozenset[str],
    ) -> list[VectorHit]:
        """Up to ``limit`` allowed neighbours in one dataset.

        The index cannot exclude forbidden collections itself, so ``k`` doubles
        until enough allowed fragments turn up or the dataset is exhausted.
        """
        k = min(limit, _MAX_KNN)
        while True:
            rows = await self.db.vector_search(
                vector, team_id=team_id, dataset_id=dataset_id, limit=k
            )
            hits = [
                VectorHit(index_id=index_id, collection_id=collection_id, score=1 - distance)
                for index_id, collection_id, distance in rows
                if collection_id not in forbid_collection_ids
            ]
            if len(hits) >= limit or len(rows) < k or k >= _MAX_KNN:
                break
            k = min(k * 2, _MAX_KNN)
        logger.debug(
            "Vector search in %s: k=%d, kept %d of %d", dataset_id, k, len(hits), len(rows)
        )
        return hits[:limit]
