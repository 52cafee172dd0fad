"""Lexical recall: per-dataset full-text search with forbidden collections removed."""

import asyncio
import logging
import re

from dataset_search.models.dataset import LexicalHit
from dataset_search.models.search import ScoredPassage, ScoreEntry, ScoreType, SearchRequest
from dataset_search.search.protocols import RecallBackends

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"\w+")


def segment_query(query: str) -> str:
    """Convert a natural language query to a safe FTS5 query.

    Each word token is quoted to avoid FTS5 syntax errors; tokens are OR-joined
    so that any matching term recalls a passage.
    """
    tokens = _WORD_RE.findall(query)
    return " OR ".join(f'"{token}"' for token in tokens)


async def fulltext_recall(
    backends: RecallBackends,
    request: SearchRequest,
    query: str,
    *,
    limit: int,
    forbid_collection_ids: frozenset[str],
) -> list[ScoredPassage]:
    """Recall passages for one query from every requested dataset.

    Each dataset is searched independently (up to ``limit`` hits each); the
    flattened hits are re-sorted by lexical score, best first.
    """
    if limit <= 0:
        return []
    segmented = segment_query(query)
    if not segmented:
        return []

    per_dataset = await asyncio.gather(
        *(
            backends.lexical.lexical_search(
                segmented, team_id=request.team_id, dataset_id=dataset_id, limit=limit
            )
            for dataset_id in request.dataset_ids
        )
    )
    hits: list[LexicalHit] = [
        hit
        for dataset_hits in per_dataset
        for hit in dataset_hits
        if hit.collection_id not in forbid_collection_ids
    ]
    hits.sort(key=lambda hit: hit.score, reverse=True)

    collections = {
        c.id: c
        for c in await backends.documents.fetch_collections(
            list(dict.fromkeys(hit.collection_id for hit in hits))
        )
    }

    passages: list[ScoredPassage] = []
    for rank, hit in enumerate(hits):
        collection = collections.get(hit.collection_id)
        passages.append(
            ScoredPassage(
                id=hit.id,
                q=hit.q,
                a=hit.a,
                chunk_index=hit.chunk_index,
                dataset_id=hit.dataset_id,
                collection_id=hit.collection_id,
                source_name=collection.name if collection else "",
                source_id=collection.source_id if collection else None,
                score=[ScoreEntry(type=ScoreType.FULL_TEXT, value=hit.score, rank=rank)],
            )
        )

    logger.debug("Full-text recall for %r: %d passages", query, len(passages))
    return passages
