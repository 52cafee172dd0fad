"""Fan a batch of queries out to both recall sources and fuse the results."""

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any

from dataset_search.models.search import RecallLimits, ScoredPassage, SearchRequest
from dataset_search.search.embedding_recall import EmbeddingRecallResult, embedding_recall
from dataset_search.search.fulltext_recall import fulltext_recall
from dataset_search.search.fusion import RRF_K, reciprocal_rank_fusion
from dataset_search.search.protocols import RecallBackends

logger = logging.getLogger(__name__)


@dataclass
class MultiQueryRecallResult:
    """Fused per-source results across all queries."""

    embedding: list[ScoredPassage]
    full_text: list[ScoredPassage]
    tokens: int


async def gather_all_or_nothing(*aws: Awaitable[Any]) -> list[Any]:
    """Run awaitables concurrently; on the first failure cancel the rest and re-raise."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        raise


async def multi_query_recall(
    backends: RecallBackends,
    request: SearchRequest,
    limits: RecallLimits,
) -> MultiQueryRecallResult:
    """Recall every query from both sources concurrently, then fuse per source.

    The forbidden-collection set is read once and shared by every recall call.
    Any single recall failure fails the whole batch.
    """
    forbid = frozenset(
        await backends.documents.forbidden_collection_ids(request.team_id, request.dataset_ids)
    )

    async def recall_one(query: str) -> tuple[EmbeddingRecallResult, list[ScoredPassage]]:
        emb, fts = await gather_all_or_nothing(
            embedding_recall(
                backends,
                request,
                query,
                limit=limits.embedding_limit,
                forbid_collection_ids=forbid,
            ),
            fulltext_recall(
                backends,
                request,
                query,
                limit=limits.full_text_limit,
                forbid_collection_ids=forbid,
            ),
        )
        return emb, fts

    per_query = await gather_all_or_nothing(*(recall_one(q) for q in request.queries))

    embedding_lists = [emb.passages for emb, _ in per_query]
    full_text_lists = [fts for _, fts in per_query]
    tokens = sum(emb.tokens for emb, _ in per_query)

    embedding = reciprocal_rank_fusion([(RRF_K, lst) for lst in embedding_lists])
    full_text = reciprocal_rank_fusion([(RRF_K, lst) for lst in full_text_lists])

    logger.debug(
        "Multi-query recall over %d queries: %d embedding, %d full-text candidates",
        len(request.queries),
        len(embedding),
        len(full_text),
    )
    return MultiQueryRecallResult(
        embedding=embedding[: limits.embedding_limit],
        full_text=full_text[: limits.full_text_limit],
        tokens=tokens,
    )
