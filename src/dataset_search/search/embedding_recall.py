"""Semantic recall: embed the query, search the vector index, hydrate passages."""

import logging
from dataclasses import dataclass

from dataset_search.models.search import ScoredPassage, ScoreEntry, ScoreType, SearchRequest
from dataset_search.search.protocols import RecallBackends

logger = logging.getLogger(__name__)


@dataclass
class EmbeddingRecallResult:
    """Passages recalled for one query, plus the tokens spent embedding it."""

    passages: list[ScoredPassage]
    tokens: int


async def embedding_recall(
    backends: RecallBackends,
    request: SearchRequest,
    query: str,
    *,
    limit: int,
    forbid_collection_ids: frozenset[str],
) -> EmbeddingRecallResult:
    """Recall up to ``limit`` passages for one query by vector similarity.

    A passage may match through several indexed fragments; it keeps the best
    similarity among them. Output is ordered by that similarity, best first.
    """
    if limit <= 0:
        return EmbeddingRecallResult(passages=[], tokens=0)

    embedding = await backends.embedder.embed(query, model=request.model)
    hits = await backends.vectors.vector_search(
        embedding.vector,
        team_id=request.team_id,
        dataset_ids=request.dataset_ids,
        limit=limit,
        forbid_collection_ids=forbid_collection_ids,
    )
    if not hits:
        return EmbeddingRecallResult(passages=[], tokens=embedding.tokens)

    hit_scores: dict[str, float] = {}
    for hit in hits:
        hit_scores[hit.index_id] = max(hit.score, hit_scores.get(hit.index_id, hit.score))

    records = await backends.documents.fetch_passages(
        team_id=request.team_id,
        dataset_ids=request.dataset_ids,
        collection_ids=list(dict.fromkeys(hit.collection_id for hit in hits)),
        index_ids=list(hit_scores),
    )
    collections = {
        c.id: c
        for c in await backends.documents.fetch_collections(
            list(dict.fromkeys(r.collection_id for r in records))
        )
    }

    best = {
        r.id: max((hit_scores[i] for i in r.indexes if i in hit_scores), default=0.0)
        for r in records
    }
    ranked = sorted(records, key=lambda r: best[r.id], reverse=True)

    passages: list[ScoredPassage] = []
    for rank, record in enumerate(ranked):
        collection = collections.get(record.collection_id)
        if collection is None:
            logger.warning(
                "Collection %s not found for passage %s", record.collection_id, record.id
            )
        passages.append(
            ScoredPassage(
                id=record.id,
                q=record.q,
                a=record.a,
                chunk_index=record.chunk_index,
                dataset_id=record.dataset_id,
                collection_id=record.collection_id,
                source_name=collection.name if collection else "",
                source_id=collection.source_id if collection else None,
                score=[ScoreEntry(type=ScoreType.EMBEDDING, value=best[record.id], rank=rank)],
            )
        )

    logger.debug("Embedding recall: %d hits -> %d passages", len(hits), len(passages))
    return EmbeddingRecallResult(passages=passages, tokens=embedding.tokens)
